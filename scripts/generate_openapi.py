"""Export the ragchat OpenAPI document.

Usage: ``python scripts/generate_openapi.py [--output docs/openapi.json]``
"""

import argparse
import json
from pathlib import Path

from ragchat.main import app


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--output", type=Path, default=Path("openapi.json"))
    args = parser.parse_args()

    schema = app.openapi()
    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(
        json.dumps(schema, indent=2, ensure_ascii=False, sort_keys=True) + "\n"
    )
    tags = sorted({tag for ops in schema["paths"].values() for op in ops.values() for tag in op.get("tags", [])})
    print(f"Wrote {args.output}: {len(schema['paths'])} paths, tags {', '.join(tags)}")


if __name__ == "__main__":
    main()
