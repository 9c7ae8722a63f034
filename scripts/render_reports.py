"""
Genera los informes PDF a partir de un resultado JSON guardado
(por ejemplo, el descargado con "Descargar JSON") y los escribe en disco.

    python -m scripts.render_reports curso1_resultado.json --out informes/
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from app.core.logging import setup_logging
from app.models.report_models import EvaluationResult
from app.services.archive import ArchiveError
from app.services.archive import pack_documents
from app.services.doc_builder import DocBuilderError
from app.services.doc_builder import render_aggregate
from app.services.doc_builder import render_per_student
from app.services.download import save_download
from app.services.filenames import archive_filename
from app.services.filenames import derive_base_name

logger = logging.getLogger("scripts.render_reports")

RESULT_SUFFIX = "_resultado"


# --- Helpers ----------------------------------------------------
def load_result(path: Path) -> EvaluationResult:
    data = json.loads(path.read_text(encoding="utf-8"))
    return EvaluationResult.model_validate(data)


def base_name_for(path: Path, explicit: str | None) -> str:
    if explicit:
        return derive_base_name(explicit)
    base = derive_base_name(path.name)
    # curso1_resultado.json -> curso1
    return base.removesuffix(RESULT_SUFFIX) or base


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render evaluation reports from a saved result JSON.")
    parser.add_argument("result", type=Path, help="path to the result JSON file")
    parser.add_argument("--out", type=Path, default=Path("."), help="output directory (default: current)")
    parser.add_argument("--source-filename", help="original spreadsheet name used for output names")
    parser.add_argument("--mode", choices=("aggregate", "per-student", "both"), default="both")
    return parser


# --- Main -------------------------------------------------------
def render_outputs(result: EvaluationResult, base_name: str, mode: str) -> list[tuple[bytes, str]]:
    """Render everything *mode* asks for before anything touches the disk."""
    outputs: list[tuple[bytes, str]] = []
    if mode in ("aggregate", "both"):
        document = render_aggregate(result, base_name)
        if document is not None:
            outputs.append((document.content, document.filename))
    if mode in ("per-student", "both"):
        documents = render_per_student(result, base_name)
        outputs.append((pack_documents(documents, base_name), archive_filename(base_name)))
    return outputs


def save_outputs(outputs: list[tuple[bytes, str]], directory: Path) -> list[Path]:
    """Save every output or none: files already written are removed on failure."""
    written: list[Path] = []
    try:
        for content, filename in outputs:
            written.append(save_download(content, filename, directory))
    except OSError:
        for path in written:
            path.unlink(missing_ok=True)
        raise
    return written


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()

    try:
        result = load_result(args.result)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.error("Cannot read result %s: %s", args.result, e)
        print(f"✘ No se pudo leer {args.result}")
        return 1

    if result.is_empty:
        print("✘ No hay resultados para descargar")
        return 1

    base_name = base_name_for(args.result, args.source_filename)
    try:
        written = save_outputs(render_outputs(result, base_name, args.mode), args.out)
    except (DocBuilderError, ArchiveError, OSError) as e:
        logger.error("Cannot generate reports for %s: %s", args.result, e, exc_info=True)
        print("✘ No se pudo generar el archivo de descarga")
        return 1

    for path in written:
        print(f"✓ Guardado {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
