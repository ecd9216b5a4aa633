# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Release run subsystem: asset naming and the orchestrator that ties parsing,
packaging, uploading and manifest publication together.
"""
