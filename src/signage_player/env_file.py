"""
Reading and updating KEY=value environment files.

The signage service is started with an EnvironmentFile (usually
/opt/signage/.env). This module parses that format for the config resolver
and performs the single-key upsert used by the API key tool.
"""

import re
import shutil
from pathlib import Path
from typing import Dict, Optional, Union

from .logger import setup_logger

logger = setup_logger(__name__)

PathLike = Union[str, Path]

_LINE_SPLIT = re.compile(r'\r?\n')


def split_lines(content: str) -> list:
    """Split file content on LF or CRLF line endings."""
    return _LINE_SPLIT.split(content)


def parse_env(content: str) -> Dict[str, str]:
    """
    Parse KEY=value lines into a dictionary.

    Blank lines and lines starting with '#' are ignored. Everything after the
    first '=' is the value, so values may contain '='. Matching single or
    double quotes around a value are removed.

    Args:
        content: Env file content

    Returns:
        Dictionary of key -> value (later duplicates win)
    """
    values: Dict[str, str] = {}

    for line in split_lines(content):
        stripped = line.strip()
        if not stripped or stripped.startswith('#') or '=' not in stripped:
            continue

        key, _, value = stripped.partition('=')
        key = key.strip()
        if key.startswith('export '):
            key = key[len('export '):].strip()
        if not key:
            continue

        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            value = value[1:-1]

        values[key] = value

    return values


def read_env_file(path: PathLike) -> Dict[str, str]:
    """
    Load an env file from disk.

    Args:
        path: Path to the env file

    Returns:
        Parsed key/value pairs, or an empty dict if the file does not exist
    """
    env_path = Path(path)
    if not env_path.exists():
        logger.debug("Env file not found: %s", env_path)
        return {}

    return parse_env(env_path.read_text(encoding='utf-8'))


def get_env_value(content: str, key: str) -> Optional[str]:
    """
    Get the raw value of the first KEY= line.

    Args:
        content: Env file content
        key: Variable name

    Returns:
        Value after the first '=' (unquoted, untrimmed), or None if absent
    """
    prefix = f'{key}='
    for line in split_lines(content):
        if line.startswith(prefix):
            return line[len(prefix):]
    return None


def upsert_env_var(content: str, key: str, value: str) -> str:
    """
    Set KEY=value in env file content.

    Every line starting with 'KEY=' is replaced; if none exists, a new line
    is appended. All other lines keep their text and order. A single
    trailing blank line is dropped and the result always ends with exactly
    one newline.

    Args:
        content: Existing env file content
        key: Variable name
        value: New value (empty string clears the variable)

    Returns:
        Updated file content
    """
    prefix = f'{key}='
    updated = False
    new_lines = []

    lines = split_lines(content)

    # A single trailing blank line (usually the final newline) is dropped
    if lines[-1].strip() == '':
        lines.pop()

    for line in lines:
        if line.startswith(prefix):
            new_lines.append(f'{key}={value}')
            updated = True
        else:
            new_lines.append(line)

    if not updated:
        new_lines.append(f'{key}={value}')

    return '\n'.join(new_lines) + '\n'


def ensure_env_file(env_path: PathLike, example_path: Optional[PathLike] = None) -> bool:
    """
    Create the env file if it does not exist.

    The file is copied from the example template when one exists, otherwise
    an empty file is created.

    Args:
        env_path: Target env file
        example_path: Optional .env.example template

    Returns:
        True if a new file was created, False if it already existed
    """
    env_path = Path(env_path)
    if env_path.exists():
        return False

    env_path.parent.mkdir(parents=True, exist_ok=True)

    if example_path is not None and Path(example_path).exists():
        shutil.copyfile(example_path, env_path)
        logger.info("Created %s from template", env_path)
        return True

    env_path.write_text('', encoding='utf-8')
    logger.info("Created empty %s", env_path)
    return True
