import json
import secrets
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives import hashes
from base64 import b64encode, b64decode, urlsafe_b64encode
from gbd7z.models import (bcolors, InvalidArgumentError)

KDF_ITERATIONS = 100000

# -----------------------------
# Key Management
# -----------------------------
def fernet_from_passphrase(passphrase: str, salt: bytes) -> Fernet:
    """
    Derives the keystore's Fernet cipher from a passphrase.

    PBKDF2-HMAC-SHA256 stretches the passphrase into the 32-byte key
    Fernet expects (AES-128-CBC + HMAC-SHA256).
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,                # 256-bit key for Fernet
        salt=salt,
        iterations=KDF_ITERATIONS,
    )
    return Fernet(urlsafe_b64encode(kdf.derive(passphrase.encode())))

def create_keystore(passphrase: str, keystore_file: str):
    """
    Create an empty passphrase-protected keystore for GBD7Z shared keys.

    Args:
        passphrase: User passphrase for keystore encryption
        keystore_file: File path for keystore storage
    """
    salt = secrets.token_bytes(16)
    fernet_from_passphrase(passphrase, salt)  # materialized to ensure validity
    keystore = {"salt": b64encode(salt).decode(), "keys": {}}
    with open(keystore_file, "w") as kf:
        json.dump(keystore, kf)
    print(f"{bcolors.OKGREEN}Keystore created at {keystore_file}{bcolors.ENDC}")

def load_keystore(passphrase: str, keystore_file: str):
    """
    Load a keystore and rebuild its Fernet cipher from the stored salt.

    Returns:
        Tuple of (keystore_data, fernet_cipher)
    """
    with open(keystore_file, "r") as kf:
        keystore = json.load(kf)
    salt = b64decode(keystore["salt"])
    return keystore, fernet_from_passphrase(passphrase, salt)

def store_key_in_keystore(passphrase: str, key_name: str, key: bytes, keystore_file: str):
    """
    Encrypt a shared key under `key_name` and save the keystore.

    Raises:
        InvalidArgumentError: If the key is empty
    """
    if isinstance(key, str):
        key = key.encode("utf-8")
    if not key:
        raise InvalidArgumentError("key must be non-empty")
    keystore, fernet = load_keystore(passphrase, keystore_file)
    keystore["keys"][key_name] = fernet.encrypt(bytes(key)).decode()
    with open(keystore_file, "w") as kf:
        json.dump(keystore, kf)

def retrieve_key_from_keystore(passphrase: str, key_name: str, keystore_file: str) -> bytes:
    """
    Retrieve and decrypt a shared key from the keystore.

    Raises:
        ValueError: If the key is not found or the passphrase is wrong
    """
    keystore, fernet = load_keystore(passphrase, keystore_file)
    if key_name not in keystore["keys"]:
        raise ValueError(f"Key {key_name} not found in keystore")
    try:
        return fernet.decrypt(keystore["keys"][key_name].encode())
    except InvalidToken:
        raise ValueError("Failed to decrypt key. Wrong passphrase?")
