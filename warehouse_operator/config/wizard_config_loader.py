"""
Wizard Configuration Loader - Loads wizard_rules.yaml into typed dataclasses.

Usage:
    from warehouse_operator.config.wizard_config_loader import load_wizard_config
    config = load_wizard_config()
    print(config.scan.debounce_seconds)
"""

from dataclasses import dataclass, field
from typing import List, Optional
from pathlib import Path
import yaml
import logging

from warehouse_operator.core.models.domain import ObjectKind

logger = logging.getLogger(__name__)


@dataclass
class ScanConfig:
    """Barcode scan handling."""
    debounce_seconds: float = 1.0      # Same code inside this window is ignored


@dataclass
class QuantityConfig:
    """Quantity entry rules."""
    allow_fractional: bool = True


@dataclass
class ExpirationConfig:
    """Expiration date entry rules."""
    default_offset_days: int = 30
    date_formats: List[str] = field(default_factory=lambda: ["%Y-%m-%d", "%d.%m.%Y"])


@dataclass
class SubmissionConfig:
    """Fact submission."""
    endpoint: Optional[str] = None     # Fallback when neither task nor settings give one


@dataclass
class BufferConfig:
    """Task buffer: objects of a submitted action pre-fill later actions of the same task."""
    enabled: bool = True
    object_kinds: List[ObjectKind] = field(default_factory=lambda: [
        ObjectKind.ITEM,
        ObjectKind.STORAGE_CONTAINER,
        ObjectKind.PLACEMENT_CONTAINER,
        ObjectKind.LOCATION,
    ])


@dataclass
class WizardConfig:
    """Complete wizard configuration."""
    scan: ScanConfig = field(default_factory=ScanConfig)
    quantity: QuantityConfig = field(default_factory=QuantityConfig)
    expiration: ExpirationConfig = field(default_factory=ExpirationConfig)
    submission: SubmissionConfig = field(default_factory=SubmissionConfig)
    buffer: BufferConfig = field(default_factory=BufferConfig)


# Default search paths for the config file
_DEFAULT_PATHS = [
    Path('config/wizard_rules.yaml'),
    Path(__file__).parent / 'wizard_rules.yaml',
]


def load_wizard_config(config_path: str = None) -> WizardConfig:
    """
    Load wizard configuration from YAML.

    Args:
        config_path: Explicit path. If None, searches default locations.

    Returns:
        WizardConfig with all rules loaded.
    """
    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Wizard config not found: {config_path}")
    else:
        path = _find_config_file()

    logger.info(f"Loading wizard config from: {path}")
    with open(path, 'r') as f:
        raw = yaml.safe_load(f) or {}

    return parse_config(raw)


def _find_config_file() -> Path:
    """Find config file in default locations."""
    for p in _DEFAULT_PATHS:
        if p.exists():
            return p
    raise FileNotFoundError(
        f"Wizard config not found. Tried: {[str(p) for p in _DEFAULT_PATHS]}"
    )


def parse_config(raw: dict) -> WizardConfig:
    """Parse raw YAML dict into typed WizardConfig."""
    wiz = raw.get('wizard', {}) or {}
    config = WizardConfig()

    sc = wiz.get('scan', {})
    if sc:
        config.scan = ScanConfig(
            debounce_seconds=float(sc.get('debounce_seconds', 1.0)),
        )

    qty = wiz.get('quantity', {})
    if qty:
        config.quantity = QuantityConfig(
            allow_fractional=qty.get('allow_fractional', True),
        )

    exp = wiz.get('expiration', {})
    if exp:
        config.expiration = ExpirationConfig(
            default_offset_days=int(exp.get('default_offset_days', 30)),
            date_formats=exp.get('date_formats', ["%Y-%m-%d", "%d.%m.%Y"]),
        )

    buf = wiz.get('buffer', {})
    if buf:
        kinds = buf.get('object_kinds')
        config.buffer = BufferConfig(
            enabled=buf.get('enabled', True),
            object_kinds=[ObjectKind(k) for k in kinds] if kinds is not None else BufferConfig().object_kinds,
        )

    sub = raw.get('submission', {})
    if sub:
        config.submission = SubmissionConfig(
            endpoint=sub.get('endpoint'),
        )

    return config
