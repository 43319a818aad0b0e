"""Configuration, read from the environment."""

import os

#################### Persistent graph store ####################
STORE_URI = os.environ.get('CONNECT_STORE_URI', 'sqlite:///connect.db')
"""SQLAlchemy URI of the database that backs the graph store."""

STORE_ECHO = bool(int(os.environ.get('CONNECT_STORE_ECHO', '0')))
"""If 1, SQLAlchemy logs every statement it emits."""


#################### Passwords ####################
SCRYPT_N = int(os.environ.get('SCRYPT_N', '16384'))
"""CPU/memory cost. 2^14 with r=8, p=1 takes roughly 100ms per hash."""

SCRYPT_R = int(os.environ.get('SCRYPT_R', '8'))
SCRYPT_P = int(os.environ.get('SCRYPT_P', '1'))


#################### Tokens ####################
TOKEN_BYTES = int(os.environ.get('TOKEN_BYTES', '32'))
"""Bytes of entropy in each email verification or password reset token."""

TOKEN_TTL = int(os.environ.get('TOKEN_TTL', '86400'))
"""Seconds a token stays valid after it is issued. 0 disables expiry."""


#################### Logging ####################
LOGLEVEL = int(os.environ.get('LOGLEVEL', 20))
LOGFILE = os.environ.get('LOGFILE')
