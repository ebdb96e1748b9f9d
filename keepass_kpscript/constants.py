"""Library-wide constants.

These constants centralize the literals of the KPScript wire contract so that
command building and output parsing agree on them.
"""



class Constants:

    # KPScript status line
    _SUCCESS_STATUS_LINE: str = "OK: Operation completed successfully."
    _UNKNOWN_FORMAT_MARKER: str = "Unknown format!"

    # Secrets
    _SILENCED_STR: str = "XXXXX"
    _ERASED_FILLER: str = "\x00" * 6

    # Password encryptor seed database
    _SEED_DATABASE_NAME: str = "pass_encryptor.kdbx"
    _SEED_DATABASE_PASSWORD: str = "pass_encryptor"
    _SEED_ENTRY_TITLE: str = "pass_encryptor"
    _TMP_DATABASE_NAME: str = "keepass_kpscript.tmp.kdbx"
    _TMP_DATABASE_SUFFIX: str = ".tmp.kdbx"

    # Formatting
    _EXPIRY_TIME_FORMAT: str = "%Y-%m-%dT%H:%M:%S"

    @classmethod
    def SUCCESS_STATUS_LINE(cls) -> str:
        return cls._SUCCESS_STATUS_LINE

    @classmethod
    def UNKNOWN_FORMAT_MARKER(cls) -> str:
        return cls._UNKNOWN_FORMAT_MARKER

    @classmethod
    def SILENCED_STR(cls) -> str:
        return cls._SILENCED_STR

    # Content left in a secret after erasure
    @classmethod
    def ERASED_FILLER(cls) -> str:
        return cls._ERASED_FILLER

    @classmethod
    def SEED_DATABASE_NAME(cls) -> str:
        return cls._SEED_DATABASE_NAME

    @classmethod
    def SEED_DATABASE_PASSWORD(cls) -> str:
        return cls._SEED_DATABASE_PASSWORD

    @classmethod
    def SEED_ENTRY_TITLE(cls) -> str:
        return cls._SEED_ENTRY_TITLE

    @classmethod
    def TMP_DATABASE_NAME(cls) -> str:
        return cls._TMP_DATABASE_NAME

    @classmethod
    def TMP_DATABASE_SUFFIX(cls) -> str:
        return cls._TMP_DATABASE_SUFFIX

    @classmethod
    def EXPIRY_TIME_FORMAT(cls) -> str:
        return cls._EXPIRY_TIME_FORMAT
