"""
Script to generate the AES key used by the padding oracle demo.

Writes (or replaces) the PADORA_KEY line of an env file:

    PADORA_KEY=<hex key>

The demo reads it through padora.common.config. Without it, the demo uses a
fresh random key for every run.
"""

import argparse
import pathlib

from padora.crypto.aes import AES_KEY_SIZES, generate_key

ENV_FILE = pathlib.Path(__file__).parent.parent / ".env"
KEY_VARIABLE = "PADORA_KEY"

def write_key(env_path: pathlib.Path, key: bytes):
    """
    Stores the key in the env file, keeping all other lines.
    """
    lines = []
    if env_path.exists():
        lines = [
            line for line in env_path.read_text(encoding="utf-8").splitlines()
            if not line.strip().startswith(f"{KEY_VARIABLE}=")
        ]
    lines.append(f"{KEY_VARIABLE}={key.hex()}")

    env_path.parent.mkdir(parents=True, exist_ok=True)
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def main(argv=None):
    """
    Parse arguments and write a new key.
    """
    parser = argparse.ArgumentParser(description="Generate an AES key for the padding oracle demo.")
    parser.add_argument(
        "--size",
        type=int,
        choices=AES_KEY_SIZES,
        default=16,
        help="Key size in bytes (default: 16, AES-128)"
    )
    parser.add_argument(
        "--env",
        type=pathlib.Path,
        default=ENV_FILE,
        help="Env file to write (default: .env in the project root)"
    )
    args = parser.parse_args(argv)

    write_key(args.env, generate_key(args.size))
    print(f"Success: {args.size * 8}-bit key saved to {args.env}")


if __name__ == "__main__":
    main()
