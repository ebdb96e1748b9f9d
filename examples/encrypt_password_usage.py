#!/usr/bin/env python3
"""Example of encrypting a password once, then opening databases with it.

KPScript encrypts passwords for the current user account: the encrypted
password only works for the user that encrypted it.
"""

import os

import keepass_kpscript
from keepass_kpscript import SecretString


def main():
    """Demonstrate opening a database with an encrypted password."""

    kpscript = keepass_kpscript.use(os.environ.get("KPSCRIPT_CMD", "KPScript"))

    with SecretString.protect(os.environ["KEEPASS_PASSWORD"]) as password:
        password_enc = kpscript.encrypt_password(password)
    print(f"Encrypted password: {password_enc}")
    print("Store it instead of the real password, e.g. in KEEPASS_PASSWORD_ENC")
    print()

    database = kpscript.open(os.environ["KEEPASS_DATABASE"], password_enc=password_enc)
    print(f"Password of 'My Entry' found: {database.password_for('My Entry') is not None}")


if __name__ == "__main__":
    main()
