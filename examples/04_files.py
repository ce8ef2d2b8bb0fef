"""
Multipart uploads and streamed downloads
"""

import tempfile
from pathlib import Path

from src.fluent_http import ClientSettings, HTTPClient


def upload_files():
    """Файлы читаются порциями во время отправки, без буферизации."""
    print("\n=== Multipart upload ===")

    tmp = Path(tempfile.mkdtemp())
    (tmp / "a.txt").write_text("first file")
    (tmp / "b.txt").write_text("second file")

    client = (
        HTTPClient("https://httpbin.org")
        .post("/post")
        .file("first", str(tmp / "a.txt"))
        .file("second", str(tmp / "b.txt"))
        .file("missing", str(tmp / "nope.txt"))
        .param("owner", "bob")
    )
    print(client.to_json()["files"])
    print(f"Skipped files: {[e.path for e in client.upload_errors]}")


def strict_upload():
    print("\n=== Strict upload ===")

    settings = ClientSettings(strict_uploads=True)
    client = HTTPClient("https://httpbin.org", settings=settings).post("/post").file("doc", "/nonexistent")
    try:
        client.response()
    except Exception as e:
        print(f"Upload aborted: {e}")


def download():
    print("\n=== Download ===")

    target = Path(tempfile.mkdtemp()) / "image.png"
    written = HTTPClient("https://httpbin.org").get("/image/png").to_file(str(target), show_progress=True)
    print(f"Saved {written} bytes to {target}")


if __name__ == "__main__":
    upload_files()
    strict_upload()
    download()
