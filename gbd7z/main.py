import sys
import argparse
from gbd7z.models import (Gbd7zParams, bcolors)
from gbd7z.utils.keystore import (create_keystore, store_key_in_keystore, retrieve_key_from_keystore)
from gbd7z.core import (encrypt, decrypt, encrypt_file, decrypt_file)

def add_key_arguments(parser):
    parser.add_argument("--key", help="Shared secret (UTF-8 text)")
    parser.add_argument("--keystore", default="keystore.json", help="Keystore filename")
    parser.add_argument("--passphrase", help="Keystore passphrase")
    parser.add_argument("--key_name", help="Key name in keystore")
    parser.add_argument("--rounds", type=int, default=Gbd7zParams.rounds)
    parser.add_argument("--chaos_len", type=int, default=Gbd7zParams.chaos_len)

def resolve_key(args) -> bytes:
    """Takes --key if given, otherwise looks the key up in the keystore."""
    if args.key:
        return args.key.encode("utf-8")
    if args.passphrase and args.key_name:
        return retrieve_key_from_keystore(args.passphrase, args.key_name, args.keystore)
    raise ValueError("Provide --key or --passphrase with --key_name")

def params_from_args(args) -> Gbd7zParams:
    return Gbd7zParams(rounds=args.rounds, chaos_len=args.chaos_len)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="GBD7Z - chaotic stream/block envelope cipher")
    subparsers = parser.add_subparsers(dest="command", required=True)

    encrypt_parser = subparsers.add_parser("encrypt", help="Encrypt a message or file")
    add_key_arguments(encrypt_parser)
    encrypt_parser.add_argument("--message", help="Text message to encrypt")
    encrypt_parser.add_argument("--in_path", help="Input file path")
    encrypt_parser.add_argument("--out_file", help="Envelope output file")

    decrypt_parser = subparsers.add_parser("decrypt", help="Decrypt an envelope or envelope file")
    add_key_arguments(decrypt_parser)
    decrypt_parser.add_argument("--envelope", help="Envelope text")
    decrypt_parser.add_argument("--in_path", help="Envelope file path")
    decrypt_parser.add_argument("--out_file", help="Plaintext output file")

    create_keystore_parser = subparsers.add_parser("create_keystore", help="Create encrypted keystore")
    create_keystore_parser.add_argument("--passphrase", required=True, help="Keystore passphrase")
    create_keystore_parser.add_argument("--keystore_file", default="keystore.json", help="Keystore filename")

    store_key_parser = subparsers.add_parser("store_key", help="Store a shared key in the keystore")
    store_key_parser.add_argument("--passphrase", required=True, help="Keystore passphrase")
    store_key_parser.add_argument("--key_name", required=True, help="Key name in keystore")
    store_key_parser.add_argument("--key", required=True, help="Shared secret (UTF-8 text)")
    store_key_parser.add_argument("--keystore", default="keystore.json", help="Keystore filename")
    return parser

def run(args):
    match args.command:
        case "encrypt":
            key = resolve_key(args)
            vp = params_from_args(args)
            if args.in_path:
                out_file = encrypt_file(key, args.in_path, args.out_file, vp)
                print(f"{bcolors.OKGREEN}Encrypted to {out_file}{bcolors.ENDC}")
            elif args.message is not None:
                envelope = encrypt(key, args.message.encode("utf-8"), vp)
                if args.out_file:
                    with open(args.out_file, "w", encoding="ascii") as f:
                        f.write(envelope)
                    print(f"{bcolors.OKGREEN}Encrypted to {args.out_file}{bcolors.ENDC}")
                else:
                    print(envelope)
            else:
                raise ValueError("Message or --in_path required")
        case "decrypt":
            key = resolve_key(args)
            vp = params_from_args(args)
            if args.in_path:
                if not args.out_file:
                    raise ValueError("--out_file required when decrypting a file")
                out_file = decrypt_file(key, args.in_path, args.out_file, vp)
                print(f"{bcolors.OKGREEN}Decrypted to {out_file}{bcolors.ENDC}")
            elif args.envelope:
                plaintext = decrypt(key, args.envelope, vp)
                if args.out_file:
                    with open(args.out_file, "wb") as f:
                        f.write(plaintext)
                    print(f"{bcolors.OKGREEN}Decrypted to {args.out_file}{bcolors.ENDC}")
                else:
                    print("Decrypted message:", plaintext.decode("utf-8", errors="replace"))
            else:
                raise ValueError("Envelope or --in_path required")
        case "create_keystore":
            create_keystore(args.passphrase, args.keystore_file)
        case "store_key":
            store_key_in_keystore(args.passphrase, args.key_name, args.key.encode("utf-8"), args.keystore)
            print(f"{bcolors.OKGREEN}Key {args.key_name} stored in {args.keystore}{bcolors.ENDC}")

def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        run(args)
    except Exception as e:
        print(f"{bcolors.FAIL}ERROR:{bcolors.ENDC}", e)
        sys.exit(1)

if __name__ == "__main__":
    main()
