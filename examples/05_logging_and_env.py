"""
Structured logging and configuration from environment / files

    export FLUENT_HTTP_RETRIES=2
    export FLUENT_HTTP_LOG_ENABLED=true
    export FLUENT_HTTP_LOG_FORMAT=json
"""

from src.fluent_http import ClientSettings, HTTPClient, load_from_env, load_from_file
from src.fluent_http.core.logging import LoggingConfig


def json_logs():
    print("\n=== JSON logs ===")

    settings = ClientSettings(
        logging=LoggingConfig.create(level="DEBUG", format="json", extra_fields={"service": "catalog"})
    )
    with HTTPClient("https://httpbin.org", settings=settings) as client:
        # api_key маскируется в логах
        client.get("/get").param("api_key", "secret").string()


def from_environment():
    print("\n=== From environment ===")

    settings = load_from_env(user_agent="env-example/1.0")
    print(settings.retry, settings.logging)


def from_file():
    print("\n=== From YAML ===")

    try:
        print(load_from_file("client.yaml"))
    except Exception as e:
        print(f"No config: {e}")


if __name__ == "__main__":
    json_logs()
    from_environment()
    from_file()
