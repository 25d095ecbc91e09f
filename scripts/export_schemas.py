"""Export JSON schemas for the API contracts shared with the web client."""

import json
from pathlib import Path

from kitasuro.app.models import Anchor, Comment, Proposal, ProposalInput
from kitasuro.app.themes.view import ItineraryView


def main() -> None:
    """Export schemas to docs/schemas/."""
    schemas_dir = Path("docs/schemas")
    schemas_dir.mkdir(parents=True, exist_ok=True)

    for model in (Anchor, Comment, Proposal, ProposalInput, ItineraryView):
        path = schemas_dir / f"{model.__name__}.schema.json"
        with open(path, "w") as f:
            json.dump(model.model_json_schema(), f, indent=2)
        print(f"Exported {model.__name__} schema to {path}")


if __name__ == "__main__":
    main()
