# SPDX-License-Identifier: Apache-2.0

"""
Middleware package for request processing.

Error mapping, public lookup rate limiting and CORS for the ouvidoria API.
"""
