"""
Artifact Compiler - Solidity sources to ABI + bytecode artifacts.

Sources are read from the contracts directory by contract name, their
imports are resolved up front against the dependency root (normally
``node_modules``), and the whole set is handed to solc as standard JSON
with every output selected.

Compilation never raises on bad source: the result is either
CompileSuccess or CompileDiagnostics, and the caller decides what to do.

Example:
    ```python
    result = compile_sols(["MyToken"], config)
    if isinstance(result, CompileSuccess):
        write_output(result, config.build_dir)
        artifact = result.artifact("MyToken")
    ```
"""

from __future__ import annotations

import json
import posixpath
import re
from collections import OrderedDict, deque
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import solcx
from solcx.exceptions import SolcError, SolcInstallationError, SolcNotInstalled

from .config import PipelineConfig
from .constants import OUTPUT_SELECTION, SOURCE_SUFFIX
from .errors import ABILoadError
from .models import (
    CompileDiagnostics,
    CompiledArtifact,
    CompileResult,
    CompileSuccess,
    Diagnostic,
    ImportResult,
    SourceModule,
)
from .utils.logging import get_logger

__all__ = [
    "find_imports",
    "scan_imports",
    "resolve_import_path",
    "load_sources",
    "build_input",
    "ensure_solc",
    "compile_sols",
    "write_output",
    "load_abi",
]

_logger = get_logger(__name__)

_COMMENT_RE = re.compile(r"//[^\n]*|/\*.*?\*/", re.DOTALL)
# import "a.sol"; import "a.sol" as A; import * as A from "a.sol"; import {X} from "a.sol";
_IMPORT_RE = re.compile(r"""\bimport\s+(?:[^"';]*?\s*from\s*)?["']([^"']+)["']""")


def find_imports(path: str, dependency_root: Path) -> ImportResult:
    """Read an import from ``<dependency_root>/<path>``.

    Failure is reported on the result, never raised.
    """
    try:
        contents = (Path(dependency_root) / path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return ImportResult(path=path, error=str(e))
    return ImportResult(path=path, contents=contents)


def scan_imports(text: str) -> List[str]:
    """Return import paths in order of appearance, ignoring comments."""
    return _IMPORT_RE.findall(_COMMENT_RE.sub("", text))


def resolve_import_path(importer: str, path: str) -> str:
    """Map an import to its source unit name.

    Relative imports are joined to the importing unit's directory, as solc does;
    anything else is used literally.
    """
    if path.startswith("./") or path.startswith("../"):
        return posixpath.normpath(posixpath.join(posixpath.dirname(importer), path))
    return path


def load_sources(
    names: Sequence[str],
    contracts_dir: Path,
    dependency_root: Path,
) -> Tuple["OrderedDict[str, SourceModule]", List[ImportResult]]:
    """Read root modules and every transitively imported module.

    Roots are keyed by bare contract name; imports by their resolved path.

    Returns:
        Ordered sources map and the list of failed import resolutions.

    Raises:
        OSError: If a root module cannot be read.
    """
    sources: "OrderedDict[str, SourceModule]" = OrderedDict()
    failures: List[ImportResult] = []

    for name in names:
        text = (Path(contracts_dir) / f"{name}{SOURCE_SUFFIX}").read_text(encoding="utf-8")
        sources[name] = SourceModule(name=name, text=text)

    pending = deque(sources.values())
    seen_failures = set()
    while pending:
        module = pending.popleft()
        for raw_path in scan_imports(module.text):
            unit = resolve_import_path(module.name, raw_path)
            if unit in sources or unit in seen_failures:
                continue
            result = find_imports(unit, dependency_root)
            if not result.ok:
                seen_failures.add(unit)
                failures.append(result)
                continue
            imported = SourceModule(name=unit, text=result.contents)
            sources[unit] = imported
            pending.append(imported)

    return sources, failures


def build_input(sources: "OrderedDict[str, SourceModule]", evm_version: Optional[str] = None) -> Dict[str, Any]:
    settings: Dict[str, Any] = {"outputSelection": OUTPUT_SELECTION}
    if evm_version:
        settings["evmVersion"] = evm_version
    return {
        "language": "Solidity",
        "sources": {name: {"content": module.text} for name, module in sources.items()},
        "settings": settings,
    }


def ensure_solc(version: str) -> None:
    """Install the requested solc release if it is not present."""
    installed = {str(v) for v in solcx.get_installed_solc_versions()}
    if version not in installed:
        _logger.info("Installing solc", extra={"version": version})
        solcx.install_solc(version)


def _collect_artifacts(contracts: Dict[str, Dict[str, Any]]) -> Dict[str, CompiledArtifact]:
    artifacts: Dict[str, CompiledArtifact] = {}
    for source_name, entries in contracts.items():
        for contract_name in entries:
            artifacts[contract_name] = CompiledArtifact.from_contracts(contracts, source_name, contract_name)
    return artifacts


def _unresolved(failures: List[ImportResult]) -> List[Diagnostic]:
    return [
        Diagnostic(severity="error", message=f"Cannot resolve import: {f.error}", source=f.path, error_type="ImportError")
        for f in failures
    ]


def compile_sols(names: Sequence[str], config: PipelineConfig) -> CompileResult:
    """Compile the named contracts.

    Args:
        names: Contract names, each read from ``<contracts_dir>/<name>.sol``
        config: Pipeline configuration (paths, solc and EVM versions)

    Returns:
        CompileSuccess, or CompileDiagnostics when solc reports an error or an
        import could not be resolved. Every diagnostic is logged.
    """
    try:
        sources, failures = load_sources(names, config.contracts_dir, config.dependency_root)
    except OSError as e:
        diag = Diagnostic(severity="error", message=f"Cannot read source: {e}", error_type="IOError")
        _logger.error("Compilation failed", extra={"contracts": list(names), "error": diag.message})
        return CompileDiagnostics(diagnostics=(diag,))

    import_diags = _unresolved(failures)
    std_input = build_input(sources, config.evm_version)

    _logger.info(
        "Compiling contracts",
        extra={"contracts": list(names), "sources": len(sources), "solc": config.solc_version},
    )
    try:
        ensure_solc(config.solc_version)
    except (SolcInstallationError, SolcNotInstalled, OSError) as e:
        diag = Diagnostic(
            severity="error",
            message=f"Cannot install solc {config.solc_version}: {e}",
            error_type="SolcInstallationError",
        )
        return _fail(import_diags + [diag])

    try:
        output = solcx.compile_standard(std_input, solc_version=config.solc_version)
    except SolcError as e:
        raw_errors = getattr(e, "error_dict", None) or []
        diags = [Diagnostic.from_solc(err) for err in raw_errors] or [
            Diagnostic(severity="error", message=str(e), error_type="SolcError")
        ]
        return _fail(import_diags + diags)

    diags = [Diagnostic.from_solc(err) for err in output.get("errors", [])]
    if import_diags or any(d.is_error for d in diags):
        return _fail(import_diags + diags)

    for warning in diags:
        _logger.warning("Compiler warning", extra={"source": warning.source, "detail": warning.message.strip()})

    contracts = output.get("contracts", {})
    return CompileSuccess(
        contracts=contracts,
        artifacts=_collect_artifacts(contracts),
        warnings=tuple(diags),
    )


def _fail(diagnostics: List[Diagnostic]) -> CompileDiagnostics:
    for diag in diagnostics:
        log = _logger.error if diag.is_error else _logger.warning
        log("Compiler diagnostic", extra={"source": diag.source, "detail": diag.message.strip()})
    return CompileDiagnostics(diagnostics=tuple(diagnostics))


def write_output(result: CompileSuccess, build_dir: Path) -> List[Path]:
    """Persist compiled contracts as JSON.

    One file per source unit, ``<build_dir>/<source name without .sol>.json``.
    Each file holds the entire ``contracts`` map, not only its own entry.

    Returns:
        Paths written, in compiler output order.
    """
    build_dir = Path(build_dir)
    build_dir.mkdir(parents=True, exist_ok=True)

    written: List[Path] = []
    payload = json.dumps(result.contracts)
    for source_name in result.contracts:
        stem = source_name[: -len(SOURCE_SUFFIX)] if source_name.endswith(SOURCE_SUFFIX) else source_name
        path = (build_dir / f"{stem}.json").resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(payload, encoding="utf-8")
        _logger.info("Wrote artifact", extra={"contract": stem, "path": str(path)})
        written.append(path)
    return written


def load_abi(contract_name: str, build_dir: Path) -> List[Dict[str, Any]]:
    """Read a contract's ABI back from ``<build_dir>/<contract_name>.json``.

    Raises:
        ABILoadError: If the file is missing or unreadable, or lacks the contract entry.
    """
    path = Path(build_dir) / f"{contract_name}.json"
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ABILoadError(
            f"Cannot read artifact for {contract_name}", details={"path": str(path)}, cause=e
        ) from e

    try:
        return data[contract_name][contract_name]["abi"]
    except (KeyError, TypeError) as e:
        raise ABILoadError(
            f"No ABI for {contract_name} in artifact", details={"path": str(path)}, cause=e
        ) from e
