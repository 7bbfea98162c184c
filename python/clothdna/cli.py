"""Command-line interface for ClothDNA."""
import argparse
import json
import logging
import sys
from pathlib import Path

from .config import ExtractorConfig
from .crypto import CryptoUtils
from .errors import ClothDNAError
from .pipeline import ClothAuthenticator
from .repository import JsonRecordStore
from .types import HashPolicy


def _build_authenticator(args) -> ClothAuthenticator:
    config = ExtractorConfig(hash_policy=HashPolicy(getattr(args, "policy", "audit")))
    store = getattr(args, "store", None)
    repository = JsonRecordStore(store) if store else None
    return ClothAuthenticator(config=config, repository=repository)


def _require_file(path_str: str, label: str) -> Path:
    path = Path(path_str)
    if not path.exists():
        print(f"Error: {label} not found: {path_str}", file=sys.stderr)
        sys.exit(1)
    return path


def register_command(args):
    """Register an item command."""
    image_path = _require_file(args.file, "File")

    private_key = None
    if args.key:
        private_key = _require_file(args.key, "Private key").read_text()

    authenticator = _build_authenticator(args)
    try:
        result = authenticator.process(
            image_path,
            item_id=args.id,
            private_key=private_key,
            signer=args.signer or "Unknown",
        )
    except ClothDNAError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps({
            "itemId": result.dna.item_id,
            "hash": result.hash_hex,
            "timestamp": result.dna.timestamp_utc,
            "signed": result.record.signature is not None,
        }, indent=2))
    else:
        print("\n✓ Item registered successfully!\n")
        print(f"Item ID: {result.dna.item_id}")
        print(f"Hash: {result.hash_hex}")
        print(f"Timestamp: {result.dna.timestamp_utc}")
        print(f"Keypoints: {result.dna.features.keypoint_count}")
        print(f"Edge density: {result.dna.features.edge_density:.4f}")
        if args.store:
            print(f"Stored in: {Path(args.store).resolve()}")


def verify_command(args):
    """Verify an item command."""
    image_path = _require_file(args.file, "File")

    if not args.hash and not (args.id and args.store):
        print("Error: provide --hash, or --id together with --store", file=sys.stderr)
        sys.exit(1)

    if args.hash and not CryptoUtils.is_hash_hex(args.hash):
        print(f"Error: not a SHA-256 hex digest: {args.hash}", file=sys.stderr)
        sys.exit(1)

    authenticator = _build_authenticator(args)
    try:
        if args.hash:
            result = authenticator.verify(image_path, args.hash, args.id, args.timestamp)
        else:
            result = authenticator.verify_item(image_path, args.id)
    except ClothDNAError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps({
            "authentic": result.is_authentic,
            "computedHash": result.computed_hash,
            "expectedHash": result.expected_hash,
        }, indent=2))
    else:
        print(f"\n{'='*60}")
        print("  Cloth Authenticity Report")
        print(f"{'='*60}\n")
        print(f"File: {image_path.resolve()}")
        print(f"Expected hash:  {result.expected_hash or '(no record)'}")
        print(f"Generated hash: {result.computed_hash}")
        print(f"Authentic: {'YES' if result.is_authentic else 'NO'}")
        print(f"\n{'='*60}\n")

    sys.exit(0 if result.is_authentic else 1)


def keys_command(args):
    """Generate keys command."""
    if not args.generate:
        print("ClothDNA - Key Management\n")
        print("Generate a new key pair:")
        print("  clothdna keys --generate\n")
        print("Options:")
        print("  -g, --generate    Generate new key pair")
        print("  -o, --output      Output directory (default: ./keys)\n")
        return

    print("Generating key pair...")
    public_key, private_key = CryptoUtils.generate_key_pair()

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    private_path = output_dir / "private.pem"
    public_path = output_dir / "public.pem"
    private_path.write_text(private_key)
    public_path.write_text(public_key)

    print("\n✓ Key pair generated successfully!\n")
    print(f"Private key: {private_path}")
    print(f"Public key: {public_path}")
    print("\n⚠ Important: Keep your private key secure and never share it!")


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="clothdna",
        description="Fingerprint cloth items from photos and verify them by hash"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log pipeline progress")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    policies = [p.value for p in HashPolicy]

    # Register command
    register_parser = subparsers.add_parser("register", help="Fingerprint and register an item")
    register_parser.add_argument("file", help="Image of the item")
    register_parser.add_argument("-i", "--id", help="Item id (default: derived from the clock)")
    register_parser.add_argument("-s", "--store", help="Directory for the JSON records")
    register_parser.add_argument("-k", "--key", help="Private key used to sign the record")
    register_parser.add_argument("--signer", help="Signer name")
    register_parser.add_argument("-p", "--policy", choices=policies, default="audit", help="Hash policy")
    register_parser.add_argument("-j", "--json", action="store_true", help="Output as JSON")
    register_parser.set_defaults(func=register_command)

    # Verify command
    verify_parser = subparsers.add_parser("verify", help="Verify an item against a hash")
    verify_parser.add_argument("file", help="New image of the item")
    verify_parser.add_argument("-H", "--hash", help="Expected hash")
    verify_parser.add_argument("-i", "--id", help="Item id of the registered record")
    verify_parser.add_argument("-t", "--timestamp", help="Timestamp of the registered record")
    verify_parser.add_argument("-s", "--store", help="Directory holding the JSON records")
    verify_parser.add_argument("-p", "--policy", choices=policies, default="audit", help="Hash policy")
    verify_parser.add_argument("-j", "--json", action="store_true", help="Output as JSON")
    verify_parser.set_defaults(func=verify_command)

    # Keys command
    keys_parser = subparsers.add_parser("keys", help="Manage signing keys")
    keys_parser.add_argument("-g", "--generate", action="store_true", help="Generate new key pair")
    keys_parser.add_argument("-o", "--output", default="./keys", help="Output directory")
    keys_parser.set_defaults(func=keys_command)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    args.func(args)


if __name__ == "__main__":
    main()
