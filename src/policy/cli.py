from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import typer
import uvicorn
import yaml

from src.common.log import configure_logging

from .evaluator import Decision, ProbesPolicy

app = typer.Typer(help="Check that every container declares liveness and readiness probes.")


@app.callback()
def main(
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    ),
) -> None:
    try:
        configure_logging(log_level)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def evaluate(
    requests: List[Path] = typer.Argument(
        ...,
        help="Validation request JSON file(s) to evaluate.",
    ),
) -> None:
    """Evaluate validation requests and print one response per file."""

    policy = ProbesPolicy()
    rejected = 0
    for path in requests:
        try:
            payload = path.read_bytes()
        except OSError as exc:
            raise typer.BadParameter(f"Failed to read request {path}: {exc}") from exc
        decision = policy.evaluate(payload)
        if not decision.accepted:
            rejected += 1
        typer.echo(json.dumps(decision.to_response()))
    if rejected:
        raise typer.Exit(code=1)


@app.command()
def check(
    inputs: List[Path] = typer.Option(
        ...,
        "--in",
        "-i",
        help="Path(s) to manifest files or directories.",
    ),
    out: Optional[Path] = typer.Option(
        None,
        "--out",
        "-o",
        help="Optional path for a JSON report of every checked document.",
    ),
) -> None:
    """Check Kubernetes manifests offline, as if each document were being created."""

    manifests = _collect_from_inputs(inputs)
    if not manifests:
        raise typer.BadParameter("No manifest files found to check.")

    policy = ProbesPolicy()
    records: List[Dict[str, Any]] = []
    for manifest in manifests:
        for index, document in enumerate(_load_documents(manifest)):
            uid = f"{manifest.name}#{index}"
            decision = policy.evaluate(manifest_request(document, uid))
            records.append(_render_record(manifest, index, document, decision))

    rejected = [record for record in records if not record["accepted"]]
    for record in rejected:
        typer.echo(f"{record['manifest']}#{record['document']} {record['kind']}/{record['name']}: rejected")
        for line in (record["message"] or "").splitlines():
            typer.echo(f"  {line}")
    typer.echo(f"Checked {len(records)} document(s); {len(rejected)} rejected.")

    if out is not None:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(records, indent=2), encoding="utf-8")
    if rejected:
        raise typer.Exit(code=1)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", envvar="PROBES_POLICY_HOST", help="Interface to bind."),
    port: int = typer.Option(3000, envvar="PROBES_POLICY_PORT", help="Port to listen on."),
) -> None:
    """Run the validation webhook."""

    uvicorn.run("src.webhook.server:app", host=host, port=port)


def manifest_request(document: Dict[str, Any], uid: str) -> Dict[str, Any]:
    """Wrap a manifest document in a CREATE validation request."""

    api_version = document.get("apiVersion")
    group, _, version = (api_version if isinstance(api_version, str) else "").rpartition("/")
    kind = document.get("kind")
    return {
        "settings": {},
        "request": {
            "uid": uid,
            "kind": {"group": group, "version": version, "kind": kind if isinstance(kind, str) else ""},
            "operation": "CREATE",
            "object": document,
        },
    }


def _render_record(manifest: Path, index: int, document: Dict[str, Any], decision: Decision) -> Dict[str, Any]:
    metadata = document.get("metadata")
    name = metadata.get("name") if isinstance(metadata, dict) else None
    return {
        "manifest": str(manifest),
        "document": index,
        "kind": document.get("kind") or "<unknown>",
        "name": name or "<unnamed>",
        "accepted": decision.accepted,
        "message": decision.message,
    }


def _load_documents(manifest: Path) -> List[Dict[str, Any]]:
    try:
        raw_text = manifest.read_text(encoding="utf-8")
    except OSError as exc:
        raise typer.BadParameter(f"Failed to read manifest {manifest}: {exc}") from exc
    try:
        documents = list(yaml.safe_load_all(raw_text))
    except yaml.YAMLError as exc:
        raise typer.BadParameter(f"Invalid YAML in {manifest}: {exc}") from exc
    return [doc for doc in documents if isinstance(doc, dict)]


def _collect_from_inputs(paths: Iterable[Path]) -> List[Path]:
    files: List[Path] = []
    for path in paths:
        resolved = path.expanduser().resolve()
        if resolved.is_dir():
            files.extend(_collect_from_directory(resolved))
        elif resolved.exists():
            files.append(resolved)
        else:
            raise typer.BadParameter(f"Manifest path not found: {path}")
    return _dedupe(files)


def _collect_from_directory(directory: Path) -> List[Path]:
    results: List[Path] = []
    for pattern in ("*.yml", "*.yaml"):
        results.extend(directory.glob(pattern))
    return sorted(results)


def _dedupe(paths: Iterable[Path]) -> List[Path]:
    unique: List[Path] = []
    seen = set()
    for path in paths:
        resolved = path.resolve()
        if resolved in seen:
            continue
        seen.add(resolved)
        unique.append(resolved)
    return unique


if __name__ == "__main__":  # pragma: no cover
    app()
