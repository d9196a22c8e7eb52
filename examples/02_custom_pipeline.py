"""Example 2: Custom Pipeline

This example declares a catalog and a pipeline from scratch:
two endpoints, a dependent parameter and a custom output transform.

For demonstration purposes, responses come from an in-memory transport.
In production, you would pass an HttpxTransport instead.
"""

import asyncio
import json
import tempfile

from apiweave.clients import TransportResponse
from apiweave.pipeline import PipelineExecutor

CANNED = {
    "https://books.example.com/api/v2/authors/7": {
        "author": {"id": 7, "name": "Ursula K. Le Guin", "favouriteBook": 21},
    },
    "https://books.example.com/api/v2/books/21": {
        "book": {"title": "The Dispossessed", "published": 1974, "pages": 387},
    },
}


class CannedTransport:
    """Serve responses from the CANNED mapping."""

    async def send(self, uri, method="GET", on_progress=None):
        body = json.dumps(CANNED[uri]).encode()
        if on_progress is not None:
            on_progress(body)
        return TransportResponse(status_code=200, body=body.decode())


def decade(value, context, record):
    """Custom transform: 1974 -> '1970s'."""
    return f"{value // 10 * 10}s"


PIPELINE = {
    "handle": "FavouriteBook",
    "catalogs": [
        {
            "slug": "Books",
            "base_uri": "https://books.example.com/api",
            "version": "v2",
            "endpoints": [
                {"slug": "Author", "path_template": "authors/{id}", "allowed_parameters": ["id"]},
                {
                    "slug": "Book",
                    "path_template": "books/{id}",
                    "allowed_parameters": ["id"],
                    "ttl_seconds": 3600,
                },
            ],
        }
    ],
    "work_units": [
        {
            "api_slug": "Books",
            "endpoint_slug": "Author",
            "priority": 1,
            "rename_rules": [{"find": "author.favouriteBook", "replace": "bookId"}],
        },
        {
            "api_slug": "Books",
            "endpoint_slug": "Book",
            "priority": 2,
            "dependent_params": {"id": "bookId"},
        },
    ],
    "output_transforms": [
        {"find": "author.name", "replace": "Author"},
        {"find": "book.title", "replace": "FavouriteBook"},
        {"find": "book.published", "replace": "Decade", "custom_transform": decade},
    ],
}


def main():
    """Run custom pipeline example."""
    print("=" * 60)
    print("apiweave — Example 2: Custom Pipeline")
    print("=" * 60)
    print()

    async def run(cache_dir):
        executor = PipelineExecutor(PIPELINE, transport=CannedTransport(), cache_dir=cache_dir)
        return await executor.run({"id": 7})

    with tempfile.TemporaryDirectory() as cache_dir:
        print("Step 1: Running pipeline...")
        record = asyncio.run(run(cache_dir))
        print(f"  ✓ {len(record)} columns")
        print()

        print("Step 2: Record")
        print(json.dumps(record, indent=2))


if __name__ == "__main__":
    main()
