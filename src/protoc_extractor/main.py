from __future__ import annotations

import argparse
import sys
from typing import Optional

from protoc_extractor.errors import ExtractionError
from protoc_extractor.extractor.schema_registry import extract_protos
from protoc_extractor.generator.proto_generator import generate_proto, generate_protos
from protoc_extractor.naming import DEFAULT_NAMESPACE
from protoc_extractor.reflection.json_loader import load_descriptors


def run(
    input_path: str,
    output_dir: Optional[str] = None,
    namespace: str = DEFAULT_NAMESPACE,
) -> None:
    """Main pipeline: load, extract, generate.

    Without an output directory the generated sources are printed to stdout.
    """
    try:
        descriptors = load_descriptors(input_path, namespace)
        protos = extract_protos(descriptors, namespace)
        if output_dir is None:
            for proto in protos.values():
                print(generate_proto(proto))
            return
        print(f"Loaded {len(descriptors)} descriptor(s) from {input_path}")
        print(f"Extracted {len(protos)} root message(s) in namespace '{namespace}'")
        proto_files = generate_protos(protos.values(), output_dir)
    except ExtractionError as e:
        print(f"FATAL: {e}", file=sys.stderr)
        sys.exit(1)

    for f in proto_files:
        print(f"  Generated: {f}")
    print("Done!")


def main():
    parser = argparse.ArgumentParser(
        description="Rebuild .proto sources from reflected protobuf descriptors",
    )
    parser.add_argument(
        "--input",
        required=True,
        help="JSON dump of the reflected descriptor graph",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to write <Name>.proto files to (default: print to stdout)",
    )
    parser.add_argument(
        "--namespace",
        default=DEFAULT_NAMESPACE,
        help=f"Qualified-name root of the types to rebuild (default: {DEFAULT_NAMESPACE})",
    )

    args = parser.parse_args()
    run(args.input, args.output_dir, args.namespace)


if __name__ == "__main__":
    main()
