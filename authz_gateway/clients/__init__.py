# Copyright 2026 The OpenChoreo Authors
# SPDX-License-Identifier: Apache-2.0

from authz_gateway.clients.upstream import UpstreamClient, strip_hop_by_hop

__all__ = ["UpstreamClient", "strip_hop_by_hop"]
