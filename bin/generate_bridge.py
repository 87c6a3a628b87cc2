#!/usr/bin/env python3
"""
Bridge Code Generator

Parses Rust-like function declarations and generates:
  1. <namespace>_types.py  - shared record/enum types
  2. <namespace>_host.py   - host command handlers (HANDLERS registry)
  3. <namespace>_client.py - async call_<name> / try_call_<name> stubs

Usage:
    python generate_bridge.py commands.idl --output-dir generated/
    python generate_bridge.py commands.idl -o generated/ --impl-module myapp.commands
"""

import argparse
import sys
import time
from pathlib import Path

# Add parent directory to path so bridgegen package can be found
sys.path.insert(0, str(Path(__file__).parent.parent))

from bridgegen import DeclarationSyntaxError, generate_bridge


def main(argv=None) -> int:
    start_time = time.perf_counter()

    parser = argparse.ArgumentParser(description="Generate host handlers and client stubs from declarations")
    parser.add_argument("idl_file", nargs="?", help="Path to declaration file (positional)")
    parser.add_argument("--idl", help="Path to declaration file (alternative)")
    parser.add_argument("--output-dir", "-o", default="generated", help="Output directory")
    parser.add_argument("--namespace", "-n", default="", help="Prefix for generated module names")
    parser.add_argument("--impl-module", default="", help="Module holding the real implementations")
    parser.add_argument("--types-module", default="", help="Import name of the shared types module")
    args = parser.parse_args(argv)

    # Support both positional and --idl argument
    idl_file = args.idl_file or args.idl
    if not idl_file:
        parser.error("declaration file is required (positional or --idl)")

    idl_path = Path(idl_file)
    namespace = args.namespace or idl_path.stem.replace("-", "_")

    try:
        artifacts = generate_bridge(
            idl_path.read_text(),
            namespace,
            impl_module=args.impl_module or None,
            types_module=args.types_module or None,
        )
    except DeclarationSyntaxError as e:
        print(f"error: {idl_path}: {e.message}", file=sys.stderr)
        return 1

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    for filename, content in artifacts.files.items():
        path = output_dir / filename
        path.write_text(content)
        print(f"Generated: {path}")

    for diag in artifacts.diagnostics:
        print(f"error: {idl_path}:{diag.line}: {diag}", file=sys.stderr)

    print(f"Bridged {len(artifacts.signatures)} command(s), skipped {len(artifacts.diagnostics)}")
    elapsed = time.perf_counter() - start_time
    print(f"Generation completed in {elapsed*1000:.2f} ms")
    return 1 if artifacts.diagnostics else 0


if __name__ == "__main__":
    sys.exit(main())
