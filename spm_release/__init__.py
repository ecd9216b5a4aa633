# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
spm-release: package per-platform binaries, upload them to a GitHub release,
and publish an spm.json manifest describing the uploaded assets.
"""

__version__ = "0.1.0"
