"""Main CLI entry point for renovate-driver."""

import sys

from renovate_driver.cli import run_cmd
from renovate_driver.config import ALL_NON_MAJOR_TITLE, DEFAULT_LIBRARY, PROJEN_UPGRADE_TITLE


def print_variants() -> None:
    """Print the --major-version selector shapes and the PR titles they look for."""
    print(f"  vNN     fix(deps): update dependency <library> to vNN  (default library {DEFAULT_LIBRARY})")
    print(f"  all     {ALL_NON_MAJOR_TITLE}  (merged within --max-age-days)")
    print(f"  projen  {PROJEN_UPGRADE_TITLE}  (merged within --max-age-days, repairs pnpm options)")


def main() -> None:
    """Main CLI entry point."""
    if len(sys.argv) < 2:
        print("Usage: renovate-driver <command> [args...]", file=sys.stderr)
        print("Commands:", file=sys.stderr)
        print(
            "  run       - Merge (or re-trigger) the Renovate PR of one variant in each repository",
            file=sys.stderr,
        )
        print("  variants  - List the --major-version selectors", file=sys.stderr)
        sys.exit(1)

    command = sys.argv[1]

    if command == "run":
        run_cmd.run_argv()
    elif command == "variants":
        print_variants()
    else:
        print(f"Error: Unknown command: {command}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
