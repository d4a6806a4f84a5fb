"""JSON exporter."""
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from dsi.parser.rule_grammar import GRAMMAR_VERSION
from dsi.schema.models import CompileSkip, MappingSet


class JsonExporter:
    """Read and write mapping sets and documents as JSON."""

    def export_document(self, output_file: Path, document: Dict[str, Any]) -> None:
        """Export a compiled or rendered document as-is."""
        output_file = Path(output_file)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2, ensure_ascii=False)

    def export_mappings(
        self,
        output_file: Path,
        mapping_set: MappingSet,
        skipped: Optional[List[CompileSkip]] = None,
    ) -> None:
        """Export a mapping set with metadata."""
        output_file = Path(output_file)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "metadata": {
                "created_at": datetime.now().isoformat(),
                "grammar_version": GRAMMAR_VERSION,
                "total_rules": len(mapping_set),
                "skipped_rules": [
                    {"rule_id": s.rule_id, "reason": s.reason, "message": s.message}
                    for s in skipped or []
                ],
            },
            "mappings": mapping_set.to_list(),
        }

        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, default=str)

    @staticmethod
    def read_json(input_file: Path) -> Any:
        """Read any JSON file."""
        with open(Path(input_file), "r", encoding="utf-8") as f:
            return json.load(f)

    def load_mappings(self, input_file: Path) -> MappingSet:
        """
        Load a mapping set.

        Accepts a bare list of rules, or an object with a "mappings" key
        (the export format). A "mappings" value holding a JSON string, as
        stored by the legacy editor, is decoded too.

        Raises:
            ValueError: If the file holds neither form
        """
        data = self.read_json(input_file)

        if isinstance(data, dict):
            data = data.get("mappings")
            if isinstance(data, str):
                data = json.loads(data)

        if not isinstance(data, list):
            raise ValueError(f"No mapping list found in {input_file}")

        return MappingSet.from_list(data)
