"""Package data directory for bundled engine binaries.

Windows builds place ``sqlite3.exe`` and ``sqlite3.dll`` (a SQLCipher-enabled
shell) here; :class:`dbcrypt.engine.staging.PackageResourceProvider` reads them.
"""
