import os, argparse, logging
from typing import Callable, Tuple, Optional
from common.config import load_config, Config, DEFAULT_CONFIG_PATH

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

def add_config_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help=f"Path to config file (default: ./{DEFAULT_CONFIG_PATH} if present)")

def add_log_level_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ERROR)")

def resolve_config_path(cli_value: Optional[str]) -> Optional[str]:
    if cli_value:
        return cli_value
    if os.path.isfile(DEFAULT_CONFIG_PATH):
        return DEFAULT_CONFIG_PATH
    return None

def parse_args_with_config(build_parser: Callable[[], argparse.ArgumentParser],
                           defaults_from_cfg: Callable[[Config], dict],
                           argv: Optional[list] = None) -> Tuple[argparse.Namespace, Config]:
    """
    1. Build a parser based on the passed build_parser function
    2. Load the config file based on the --config argument (passed as an argument to the parser)
    3. Use the values returned by defaults_from_cfg as parser defaults, so explicit CLI flags win

    Raises ConfigError when the config file cannot be loaded.
    """
    p = build_parser()
    cfg_path = resolve_config_path(p.parse_known_args(argv)[0].config)
    cfg = load_config(cfg_path)
    p.set_defaults(**defaults_from_cfg(cfg))
    args = p.parse_args(argv)
    return args, cfg

def setup_logging(log_level: str) -> None:
    logging.basicConfig(level=getattr(logging, log_level.upper(), logging.INFO),
                        format=LOG_FORMAT)
