"""Validation pipeline: syntax, structure, paths and environment per config file."""

import os
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from ..models import (
    CheckReport,
    ConfigDocument,
    ConfigLocation,
    Diagnostic,
    DiagnosticCode,
    DoctorSettings,
)
from ..probe import HandshakeProber, ProbeLogger, ProbeOrchestrator
from .config_loader import find_server_mapping_key, get_servers_from_config
from .env_checks import validate_env_vars
from .json_syntax import validate_json_syntax
from .path_checks import validate_paths


def validate_structure(config: Mapping[str, Any], config_path: str) -> List[Diagnostic]:
    """Check that the server mapping and its entries are objects."""
    servers = get_servers_from_config(config)
    if servers is None:
        key = find_server_mapping_key(config)
        if key is None:
            return []
        return [
            Diagnostic.error(
                DiagnosticCode.INVALID_SERVERS,
                f'"{key}" must be an object mapping server names to server configs',
                config_path,
            )
        ]

    return [
        Diagnostic.error(
            DiagnosticCode.INVALID_SERVER_ENTRY,
            f'Server "{name}": Configuration must be an object',
            config_path,
        )
        for name, entry in servers.items()
        if not isinstance(entry, dict)
    ]


class ValidationPipeline:
    """Runs every validator over each config file and aggregates diagnostics."""

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        platform: Optional[str] = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            environ: Environment that path and variable checks resolve against
            platform: ``sys.platform`` style identifier used by path checks
        """
        self.environ = dict(environ if environ is not None else os.environ)
        self.platform = platform

    def check_file(self, config_path: Path) -> Tuple[ConfigDocument, List[Diagnostic]]:
        """Validate one file.

        Returns:
            The parsed document and every diagnostic for it. Downstream checks
            are skipped when the file did not parse into a mapping.
        """
        document = validate_json_syntax(config_path)
        diagnostics = list(document.diagnostics)

        if document.mapping is None:
            return document, diagnostics

        file = document.path
        diagnostics.extend(validate_structure(document.mapping, file))
        diagnostics.extend(validate_paths(document.mapping, file, self.environ, self.platform))
        diagnostics.extend(validate_env_vars(document.mapping, file, self.environ))
        return document, diagnostics

    def run(self, locations: Sequence[ConfigLocation]) -> CheckReport:
        """Validate every existing location; one bad file never stops the others."""
        report = CheckReport(locations=list(locations))
        for location in locations:
            if not location.exists:
                continue
            document, diagnostics = self.check_file(Path(location.path))
            report.documents.append(document)
            report.diagnostics.extend(diagnostics)
        return report


async def run_check(
    locations: Sequence[ConfigLocation],
    settings: Optional[DoctorSettings] = None,
    environ: Optional[Mapping[str, str]] = None,
    logger: Optional[ProbeLogger] = None,
) -> CheckReport:
    """Validate config files and, unless skipped, probe their servers.

    Args:
        locations: Candidate config locations; only existing ones are read
        settings: Doctor settings (timeout, concurrency, handshake identity)
        environ: Environment for validators and spawned servers
        logger: Probe event logger

    Returns:
        The aggregated report
    """
    settings = settings or DoctorSettings()
    environ = dict(environ if environ is not None else os.environ)

    report = ValidationPipeline(environ=environ).run(locations)

    parsed = [document for document in report.documents if document.valid]
    if settings.skip_health or not parsed:
        return report

    logger = logger or ProbeLogger(
        max_entries=settings.max_log_entries, log_file=settings.log_file
    )
    prober = HandshakeProber.from_settings(settings, environ=environ, logger=logger)
    orchestrator = ProbeOrchestrator(prober, max_concurrency=settings.max_concurrency)

    report.server_results = await orchestrator.probe_documents(parsed)
    report.health_checked = True
    return report
