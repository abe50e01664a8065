"""
Configuration Management

Handles loading and merging configuration files.

Usage:
    from handtrace.utils.config import load_config

    config = load_config('configs/default.yaml')
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field


@dataclass
class FrameConfig:
    """Depth sensor frame geometry."""
    width: int = 512
    height: int = 424
    no_player_value: int = 255

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


@dataclass
class HandConfig:
    """Hand reference and depth band configuration."""
    bend_threshold_mm: float = 60.0
    window_half_width: int = 60
    window_half_height: int = 60
    both_hands_enabled: bool = True
    gate_windows: bool = True
    tolerance: float = 1e-5
    wrist_depth_scale: float = 1000.0


@dataclass
class OutlineConfig:
    """Outline tracing configuration."""
    step_bound_factor: int = 1
    trace_bend: bool = False


@dataclass
class DisplayConfig:
    """Per-category display colors (BGRA packed as 0xAARRGGBB)."""
    none_color: int = 0x00000000
    left_palm_color: int = 0xFF00FF00
    left_bend_color: int = 0xFF808000
    right_palm_color: int = 0xFF0080FF
    right_bend_color: int = 0xFF800080
    outline_color: int = 0xFF33FF00
    mark_outline: bool = True


@dataclass
class Config:
    """Main configuration container."""
    project_name: str = "handtrace"
    version: str = "1.0.0"

    # Sub-configurations
    frame: FrameConfig = field(default_factory=FrameConfig)
    hand: HandConfig = field(default_factory=HandConfig)
    outline: OutlineConfig = field(default_factory=OutlineConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None
    profile: bool = False

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'Config':
        """Create Config from dictionary."""
        config = cls()
        config_dict = config_dict or {}

        # Project settings
        project = config_dict.get('project', {})
        config.project_name = project.get('name', config.project_name)
        config.version = project.get('version', config.version)

        # Frame config
        frame = config_dict.get('frame', {})
        config.frame = FrameConfig(
            width=frame.get('width', 512),
            height=frame.get('height', 424),
            no_player_value=frame.get('no_player_value', 255)
        )

        # Hand config
        hand = config_dict.get('hand', {})
        window = hand.get('window', {})
        config.hand = HandConfig(
            bend_threshold_mm=hand.get('bend_threshold_mm', 60.0),
            window_half_width=window.get('half_width', 60),
            window_half_height=window.get('half_height', 60),
            both_hands_enabled=hand.get('both_hands_enabled', True),
            gate_windows=window.get('enabled', True),
            tolerance=hand.get('tolerance', 1e-5),
            wrist_depth_scale=hand.get('wrist_depth_scale', 1000.0)
        )

        # Outline config
        outline = config_dict.get('outline', {})
        config.outline = OutlineConfig(
            step_bound_factor=outline.get('step_bound_factor', 1),
            trace_bend=outline.get('trace_bend', False)
        )

        # Display config
        display = config_dict.get('display', {})
        colors = display.get('colors', {})
        defaults = DisplayConfig()
        config.display = DisplayConfig(
            none_color=_parse_color(colors.get('none', defaults.none_color)),
            left_palm_color=_parse_color(colors.get('left_palm', defaults.left_palm_color)),
            left_bend_color=_parse_color(colors.get('left_bend', defaults.left_bend_color)),
            right_palm_color=_parse_color(colors.get('right_palm', defaults.right_palm_color)),
            right_bend_color=_parse_color(colors.get('right_bend', defaults.right_bend_color)),
            outline_color=_parse_color(colors.get('outline', defaults.outline_color)),
            mark_outline=display.get('mark_outline', True)
        )

        # Logging
        logging_cfg = config_dict.get('logging', {})
        config.log_level = logging_cfg.get('level', config.log_level)
        config.log_file = logging_cfg.get('log_file', config.log_file)
        config.profile = logging_cfg.get('profile', config.profile)

        config.validate()
        return config

    def validate(self):
        """Reject settings the pipeline cannot run with."""
        if self.frame.width <= 0 or self.frame.height <= 0:
            raise ValueError(
                f"Frame size must be positive, got {self.frame.width}x{self.frame.height}"
            )
        if not 0 <= self.frame.no_player_value <= 255:
            raise ValueError(f"no_player_value must fit in uint8: {self.frame.no_player_value}")
        if self.hand.bend_threshold_mm < 0:
            raise ValueError(f"bend_threshold_mm must be >= 0: {self.hand.bend_threshold_mm}")
        if self.hand.window_half_width < 0 or self.hand.window_half_height < 0:
            raise ValueError("Gating window half extents must be >= 0")
        if self.outline.step_bound_factor < 1:
            raise ValueError(f"step_bound_factor must be >= 1: {self.outline.step_bound_factor}")


def _parse_color(value) -> int:
    """Accept ints or hex strings like '0xFF33FF00' / '#FF33FF00'."""
    if isinstance(value, str):
        value = value.strip().lstrip('#')
        value = int(value, 16)
    value = int(value)
    if not 0 <= value <= 0xFFFFFFFF:
        raise ValueError(f"Color out of uint32 range: {value:#x}")
    return value


def load_config(config_path: str) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to YAML config file

    Returns:
        Config object
    """
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, 'r') as f:
        config_dict = yaml.safe_load(f)

    return Config.from_dict(config_dict)


def merge_configs(base: Dict, override: Dict) -> Dict:
    """
    Merge two config dictionaries.

    Args:
        base: Base configuration
        override: Override values

    Returns:
        Merged configuration
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def config_to_dict(config: Config) -> Dict[str, Any]:
    """Inverse of Config.from_dict."""
    return {
        'project': {
            'name': config.project_name,
            'version': config.version
        },
        'frame': {
            'width': config.frame.width,
            'height': config.frame.height,
            'no_player_value': config.frame.no_player_value
        },
        'hand': {
            'bend_threshold_mm': config.hand.bend_threshold_mm,
            'both_hands_enabled': config.hand.both_hands_enabled,
            'tolerance': config.hand.tolerance,
            'wrist_depth_scale': config.hand.wrist_depth_scale,
            'window': {
                'enabled': config.hand.gate_windows,
                'half_width': config.hand.window_half_width,
                'half_height': config.hand.window_half_height
            }
        },
        'outline': {
            'step_bound_factor': config.outline.step_bound_factor,
            'trace_bend': config.outline.trace_bend
        },
        'display': {
            'mark_outline': config.display.mark_outline,
            'colors': {
                'none': f"0x{config.display.none_color:08X}",
                'left_palm': f"0x{config.display.left_palm_color:08X}",
                'left_bend': f"0x{config.display.left_bend_color:08X}",
                'right_palm': f"0x{config.display.right_palm_color:08X}",
                'right_bend': f"0x{config.display.right_bend_color:08X}",
                'outline': f"0x{config.display.outline_color:08X}"
            }
        },
        'logging': {
            'level': config.log_level,
            'log_file': config.log_file,
            'profile': config.profile
        }
    }


def save_config(config: Config, path: str):
    """Save configuration to YAML file."""
    with open(path, 'w') as f:
        yaml.dump(config_to_dict(config), f, default_flow_style=False)
