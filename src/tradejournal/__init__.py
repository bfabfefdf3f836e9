# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Trading journal: accounts, sessions and broker records."""

__version__ = "0.1.0"
