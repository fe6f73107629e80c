#!/usr/bin/env python3
"""
Create a fixed storefront identity key at config/keys/identity_private.pem.

Without one, every session signs in with a freshly generated key. A fixed
key keeps the principal stable across restarts, which is what you want when
granting yourself the admin role on the mock backend.

Usage:
    python scripts/generate_keys.py [--force]
"""

import os
import sys
from pathlib import Path

from storefront.services.identity import Identity

KEY_PATH = Path(__file__).resolve().parent.parent / "config" / "keys" / "identity_private.pem"


def write_identity_key(path: Path) -> Identity:
    identity = Identity.generate()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(identity.to_pem())
    os.chmod(path, 0o600)
    return identity


def main() -> None:
    if KEY_PATH.exists() and "--force" not in sys.argv[1:]:
        print(f"{KEY_PATH} already exists; pass --force to replace it")
        sys.exit(1)

    identity = write_identity_key(KEY_PATH)

    print(f"Wrote {KEY_PATH}")
    print(f"Principal: {identity.principal}\n")
    print("Add to config/.env:")
    print(f"  LENS_IDENTITY_PRIVATE_KEY_PATH={KEY_PATH}")
    print(f'  LENS_BACKEND_ADMIN_PRINCIPALS=["{identity.principal}"]   # optional, grants admin')


if __name__ == "__main__":
    main()
