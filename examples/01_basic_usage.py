"""
Basic fluent-http usage

GET with query params, JSON and form POST, raw body, decoding into models.
"""

from pydantic import BaseModel

from src.fluent_http import ContentType, HTTPClient, get


class Post(BaseModel):
    id: int
    title: str
    userId: int


def get_with_params():
    """GET with query string built from params."""
    print("\n=== GET with params ===")

    client = HTTPClient("https://jsonplaceholder.typicode.com").get("/posts").param("userId", "1")

    print(f"Status: {client.response().status_code}")
    print(f"Posts: {len(client.to_json())}")


def decode_into_model():
    print("\n=== Decode into pydantic model ===")

    post = get("https://jsonplaceholder.typicode.com/posts/1").to_json(Post)
    print(f"Post #{post.id}: {post.title}")


def post_json():
    """POST with params encoded as JSON (non-string values kept)."""
    print("\n=== POST JSON ===")

    client = (
        HTTPClient("https://jsonplaceholder.typicode.com")
        .post("/posts")
        .set_content_type(ContentType.JSON)
        .param("title", "My Post")
        .param("userId", 1)
    )
    print(f"Created: {client.to_json()}")


def post_form():
    print("\n=== POST form ===")

    client = (
        HTTPClient("https://httpbin.org")
        .post("/post")
        .param("user", "bob")
        .param("lang", "en")
    )
    print(f"Form echoed: {client.to_json()['form']}")


def raw_body():
    print("\n=== Raw body ===")

    client = (
        HTTPClient("https://httpbin.org")
        .put("/put")
        .header("Content-Type", "text/plain")
        .body("plain text payload")
    )
    print(client.to_json()["data"])


if __name__ == "__main__":
    get_with_params()
    decode_into_model()
    post_json()
    post_form()
    raw_body()
