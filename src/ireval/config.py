from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import InvalidInputError
from .loaders import FORMATS

DEFAULT_OUTPUT_PREFIX = "output"


@dataclass(slots=True)
class EvaluationConfig:
    gold_standard_file: Optional[Path | str] = None
    query_result_set_file: Optional[Path | str] = None
    format: str = "yaml"
    output: str = DEFAULT_OUTPUT_PREFIX
    verbose: bool = False
    cleanup: bool = True
    write_csv: bool = True

    def validate(self) -> None:
        if self.format not in FORMATS:
            raise InvalidInputError(
                f"I don't understand the format '{self.format}'. Choose one of: {', '.join(FORMATS)}"
            )
        if self.gold_standard_file is None:
            raise InvalidInputError("A gold standard file is required.")
        if self.query_result_set_file is None:
            raise InvalidInputError("A query result set file is required.")

    def output_path(self, name: str) -> Path:
        # e.g. output_statistics.yml
        return Path(f"{self.output}_{name}")
