# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Release hosts. GitHub is the real target; the local directory publisher
backs --dry-run.
"""
