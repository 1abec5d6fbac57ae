# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication helpers.

This package provides:
- Password hashing/verification (argon2)
- Stateless credential tokens for the `token` cookie (itsdangerous)
- Server-side sessions with flash messages (itsdangerous-signed session id)
"""
