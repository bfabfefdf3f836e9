# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication.

This package provides:
- Password hashing/verification (argon2)
- Server-side sessions with sliding expiration and their cookie
- Login/signup flows returning explicit results
"""
