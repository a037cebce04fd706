"""
Command line tool to set or clear CONTROLLER_API_KEY in the signage env file.

Usage:
    signage-configure-api-key                       # prompt on the terminal
    signage-configure-api-key --key abc123          # set from argument
    CONTROLLER_API_KEY=abc123 signage-configure-api-key --non-interactive
    signage-configure-api-key --env /opt/signage/.env --key abc123

The env file is created from .env.example in the signage directory when it
does not exist yet. The service must be restarted to pick up the new key.
"""

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

from .env_file import ensure_env_file, get_env_value, upsert_env_var

API_KEY_VARIABLE = 'CONTROLLER_API_KEY'
PROMPT = 'Enter CoreGeek Displays API key (leave blank to clear): '


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='signage-configure-api-key',
        description="Set the CoreGeek Displays API key for the signage player",
    )
    parser.add_argument(
        '--signage-dir',
        default=os.environ.get('SIGNAGE_DIR') or os.getcwd(),
        help="Signage install directory containing .env (default: $SIGNAGE_DIR or cwd)",
    )
    parser.add_argument('--env', dest='env_file', help="Env file path (default: <signage-dir>/.env)")
    parser.add_argument('--key', help="API key to write (leave blank at the prompt to clear)")
    parser.add_argument(
        '--non-interactive',
        action='store_true',
        help="Fail instead of prompting when no key is provided",
    )
    return parser


def prompt_for_key() -> Optional[str]:
    """
    Ask for the key on the terminal.

    Returns:
        Trimmed answer, or None when stdin is not a TTY
    """
    if not sys.stdin.isatty():
        return None
    return input(PROMPT).strip()


def run(argv: Optional[List[str]] = None) -> int:
    """
    Run the tool.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)

    signage_dir = Path(args.signage_dir).resolve()
    env_path = Path(args.env_file).resolve() if args.env_file else signage_dir / '.env'

    if ensure_env_file(env_path, signage_dir / '.env.example'):
        print(f"Created {env_path}.")

    content = env_path.read_text(encoding='utf-8')
    current_value = get_env_value(content, API_KEY_VARIABLE) or ''

    key = args.key or os.environ.get(API_KEY_VARIABLE) or ''

    if not key:
        if args.non_interactive:
            print(f"API key not provided. Use --key or provide {API_KEY_VARIABLE}.", file=sys.stderr)
            return 1

        answer = prompt_for_key()
        if answer is None:
            print("Interactive input is not available. Provide a key via --key.", file=sys.stderr)
            return 1
        key = answer

    value = key.strip()
    if not value and not current_value:
        print("API key remains unset.")
        return 0

    env_path.write_text(upsert_env_var(content, API_KEY_VARIABLE, value), encoding='utf-8')

    if value:
        print(f"API key updated in {env_path}.")
    else:
        print(f"API key cleared in {env_path}.")

    return 0


def main() -> None:
    """Entry point for the signage-configure-api-key console script."""
    sys.exit(run())


if __name__ == '__main__':
    main()
