"""Export JSON schemas for the duplicate verdict models."""

import json
from pathlib import Path

from backend.research_docs.models import DuplicateMatch, SimilarityVerdict


def main() -> None:
    """Export schemas to docs/schemas/."""
    schemas_dir = Path("docs/schemas")
    schemas_dir.mkdir(parents=True, exist_ok=True)

    for model in (SimilarityVerdict, DuplicateMatch):
        path = schemas_dir / f"{model.__name__}.schema.json"
        with open(path, "w") as f:
            json.dump(model.model_json_schema(), f, indent=2)
        print(f"Exported {model.__name__} schema to {path}")


if __name__ == "__main__":
    main()
