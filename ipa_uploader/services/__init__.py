# SPDX-License-Identifier: MIT
"""Application services.

Services hold the upload workflow and coordinate core/ types with the
github/ and platform/ infrastructure.
"""
