"""Write or verify the gateway's OpenAPI document.

    uploadhub-openapi --output openapi.json
    uploadhub-openapi --output openapi.json --check
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from uploadhub.api.server import create_contract_app


def build_openapi_schema() -> dict[str, Any]:
    return create_contract_app().openapi()


def render_openapi_schema() -> str:
    """Serialize the schema with sorted keys so regenerating it is stable."""
    return json.dumps(build_openapi_schema(), indent=2, sort_keys=True, ensure_ascii=True) + "\n"


def write_openapi_schema(output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_openapi_schema(), encoding="utf-8")


def openapi_schema_is_current(output_path: Path) -> bool:
    """True when `output_path` already holds the schema the code would produce."""
    if not output_path.is_file():
        return False
    return output_path.read_text(encoding="utf-8") == render_openapi_schema()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Export the uploadhub OpenAPI schema")
    parser.add_argument("--output", required=True, type=Path, help="Path of the JSON schema file")
    parser.add_argument(
        "--check",
        action="store_true",
        help="Exit 1 instead of writing when the file is missing or stale",
    )
    args = parser.parse_args(argv)

    if not args.check:
        write_openapi_schema(args.output)
        return
    if not openapi_schema_is_current(args.output):
        print(f"✗ OpenAPI schema is out of date: {args.output}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
