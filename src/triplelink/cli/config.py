"""
Configuration file support for the triplelink CLI.

Supports YAML and JSON config files with CLI argument override. A config
mirrors the CLI flags, grouped in sections:

```yaml
input:
  genes: data/genes.txt
  expression: data/expression.csv
output: results/run1
graph:
  keep_top_n: 10
  one_sigma: 0.30
  two_sigma: 0.60
  three_sigma: 0.90
  method: pearson
  workers: 4
clustering:
  high_cutoff: 3
  med_cutoff: 2
```
"""

import json
from argparse import SUPPRESS, ArgumentParser, Namespace
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from triplelink.network.builder import HIGH_BAND, MED_BAND, SigmaBands


@dataclass
class ClusteringConfig:
    """
    Complete parameter set for one triple-link run.

    ``two_sigma`` may be None, in which case it sits midway between one and
    three sigma.
    """
    genes: Optional[Path] = None
    expression: Optional[Path] = None
    correlation: Optional[Path] = None
    output: Optional[Path] = None
    keep_top_n: int = 10
    one_sigma: float = 0.30
    two_sigma: Optional[float] = None
    three_sigma: float = 0.90
    high_cutoff: int = HIGH_BAND
    med_cutoff: int = MED_BAND
    method: str = "pearson"
    workers: int = 1

    def bands(self) -> SigmaBands:
        return SigmaBands.from_cutoffs(self.one_sigma, self.three_sigma, self.two_sigma)

    def validate(self) -> None:
        """
        Raises:
            ValueError: If any parameter is out of range
        """
        validate_config({
            'graph': {
                'keep_top_n': self.keep_top_n,
                'one_sigma': self.one_sigma,
                'two_sigma': self.two_sigma,
                'three_sigma': self.three_sigma,
                'method': self.method,
                'workers': self.workers,
            },
            'clustering': {
                'high_cutoff': self.high_cutoff,
                'med_cutoff': self.med_cutoff,
            },
        })
        self.bands()

    def to_dict(self) -> Dict[str, Any]:
        return {k: (str(v) if isinstance(v, Path) else v) for k, v in asdict(self).items()}


# (section, key) in the config file -> argparse destination
CONFIG_MAPPINGS: Dict[Tuple[Optional[str], str], str] = {
    ('input', 'genes'): 'genes',
    ('input', 'expression'): 'expression',
    ('input', 'correlation'): 'correlation',
    (None, 'output'): 'output',
    ('graph', 'keep_top_n'): 'keep_top_n',
    ('graph', 'one_sigma'): 'one_sigma',
    ('graph', 'two_sigma'): 'two_sigma',
    ('graph', 'three_sigma'): 'three_sigma',
    ('graph', 'method'): 'method',
    ('graph', 'workers'): 'workers',
    ('clustering', 'high_cutoff'): 'high_cutoff',
    ('clustering', 'med_cutoff'): 'med_cutoff',
}

PATH_ARGS = {'genes', 'expression', 'correlation', 'output'}

SHORT_TO_LONG = {
    'g': 'genes',
    'e': 'expression',
    'c': 'config',
    'o': 'output',
    'n': 'keep_top_n',
    'v': 'verbose',
}


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Load configuration from YAML or JSON file.

    Parameters:
        config_path: Path to config file (.yaml, .yml, or .json)

    Returns:
        Dictionary with configuration values

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If file format is unsupported or invalid
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    suffix = config_path.suffix.lower()

    try:
        with open(config_path, 'r') as f:
            if suffix in ('.yaml', '.yml'):
                config = yaml.safe_load(f)
            elif suffix == '.json':
                config = json.load(f)
            else:
                raise ValueError(
                    f"Unsupported config format: {suffix}. "
                    f"Use .yaml, .yml, or .json"
                )
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}")

    if config is None:
        return {}

    if not isinstance(config, dict):
        raise ValueError("Config file must contain a dictionary/mapping at top level")

    return config


def _merge_value(cli_value: Any, config_value: Any, was_explicitly_set: bool) -> Any:
    """
    Merge a single config value with CLI argument.

    Rules:
    - CLI args ALWAYS override config if explicitly set
    - If CLI arg not set, use config value
    - If neither set, keep CLI default
    """
    if was_explicitly_set:
        return cli_value
    if config_value is not None:
        return config_value
    return cli_value


def _explicit_args(
    cli_args: Optional[List[str]],
    parser: Optional[ArgumentParser] = None,
) -> set:
    """
    Destinations the user set on the command line.

    With ``parser``, the arguments are re-parsed with every default
    suppressed, so attached short options (``-n5``) and abbreviated long
    options (``--keep-top 5``) are recognized exactly as argparse reads them.
    Without it, raw tokens are scanned.
    """
    if parser is not None:
        return _parsed_dests(parser, cli_args or [])

    explicit = set()
    for arg in cli_args or []:
        if arg.startswith('--'):
            explicit.add(arg[2:].split('=', 1)[0].replace('-', '_'))
        elif arg.startswith('-') and len(arg) >= 2 and arg[1] in SHORT_TO_LONG:
            explicit.add(SHORT_TO_LONG[arg[1]])
    return explicit


def _parsed_dests(parser: ArgumentParser, cli_args: List[str]) -> set:
    saved_defaults = {action: action.default for action in parser._actions}
    saved_parser_defaults = parser._defaults
    try:
        for action in parser._actions:
            action.default = SUPPRESS
        parser._defaults = {}
        explicit, _ = parser.parse_known_args(cli_args)
    finally:
        for action, default in saved_defaults.items():
            action.default = default
        parser._defaults = saved_parser_defaults
    return set(vars(explicit))


def _lookup(config: Dict[str, Any], section: Optional[str], key: str) -> Any:
    if section is None:
        return config.get(key)
    values = config.get(section)
    if not isinstance(values, dict):
        return None
    return values.get(key)


def merge_config_with_args(
    config: Dict[str, Any],
    args: Namespace,
    cli_args: Optional[List[str]] = None,
    parser: Optional[ArgumentParser] = None,
) -> Namespace:
    """
    Merge config file values with CLI arguments.

    Priority (highest to lowest):
    1. Explicitly provided CLI arguments
    2. Config file values
    3. CLI argument defaults

    Parameters:
        config: Configuration dictionary from load_config()
        args: Parsed CLI arguments (argparse.Namespace)
        cli_args: Raw CLI arguments list (for detecting explicit values)
                  If None, assumes all args are defaults
        parser: Parser that produced ``args``; when given, explicit flags are
                detected by re-parsing ``cli_args`` with it

    Returns:
        Updated Namespace with merged values
    """
    explicit_args = _explicit_args(cli_args, parser)
    merged = Namespace(**vars(args))

    for (section, key), arg_name in CONFIG_MAPPINGS.items():
        config_value = _lookup(config, section, key)
        if config_value is not None and arg_name in PATH_ARGS:
            config_value = Path(config_value)
        setattr(merged, arg_name, _merge_value(
            getattr(merged, arg_name, None),
            config_value,
            arg_name in explicit_args,
        ))

    return merged


def _check_known_keys(config: Dict[str, Any]) -> None:
    """Reject keys outside CONFIG_MAPPINGS, e.g. ``keep_top_n`` at top level."""
    sections = {section for section, _ in CONFIG_MAPPINGS if section is not None}
    unknown = []
    for name, value in config.items():
        if (None, name) in CONFIG_MAPPINGS:
            continue
        if name not in sections:
            unknown.append(name)
            continue
        if value is None:
            continue
        if not isinstance(value, dict):
            raise ValueError(f"Config section '{name}' must be a mapping, got: {value!r}")
        unknown.extend(f"{name}.{key}" for key in value if (name, key) not in CONFIG_MAPPINGS)

    if unknown:
        expected = ', '.join(
            key if section is None else f"{section}.{key}" for section, key in CONFIG_MAPPINGS
        )
        raise ValueError(
            f"Unknown config keys: {', '.join(unknown)}. Expected: {expected}"
        )


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate configuration structure and values.

    Raises:
        ValueError: If configuration is invalid
    """
    _check_known_keys(config)

    graph = config.get('graph') or {}
    clustering = config.get('clustering') or {}

    if 'method' in graph and graph['method'] is not None:
        valid_methods = ['pearson', 'spearman']
        if graph['method'] not in valid_methods:
            raise ValueError(
                f"Invalid correlation method '{graph['method']}'. "
                f"Choose from: {', '.join(valid_methods)}"
            )

    for key in ('keep_top_n', 'workers'):
        value = graph.get(key)
        if value is not None and (not isinstance(value, int) or isinstance(value, bool) or value < 1):
            raise ValueError(f"graph.{key} must be a positive integer, got: {value}")

    sigmas = [graph.get(k) for k in ('one_sigma', 'two_sigma', 'three_sigma')]
    for name, value in zip(('one_sigma', 'two_sigma', 'three_sigma'), sigmas):
        if value is not None and (not isinstance(value, (int, float)) or not -1.0 <= value <= 1.0):
            raise ValueError(f"graph.{name} must be a correlation in [-1, 1], got: {value}")
    present = [s for s in sigmas if s is not None]
    if any(a >= b for a, b in zip(present, present[1:])):
        raise ValueError(
            f"Sigma cutoffs must increase from one to three sigma, got: {present}"
        )

    high = clustering.get('high_cutoff')
    med = clustering.get('med_cutoff')
    for name, value in (('high_cutoff', high), ('med_cutoff', med)):
        if value is not None and (not isinstance(value, int) or isinstance(value, bool) or value < 0):
            raise ValueError(f"clustering.{name} must be a non-negative integer, got: {value}")
    if high is not None and med is not None and med > high:
        raise ValueError(
            f"clustering.med_cutoff ({med}) must not exceed clustering.high_cutoff ({high})"
        )


def config_from_args(args: Namespace) -> ClusteringConfig:
    """Build a validated ClusteringConfig from (merged) CLI arguments."""
    defaults = ClusteringConfig()
    config = ClusteringConfig(**{
        name: getattr(args, name, getattr(defaults, name))
        for name in ClusteringConfig.__dataclass_fields__
    })
    config.validate()
    return config
