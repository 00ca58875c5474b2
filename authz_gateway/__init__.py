# Copyright 2026 The OpenChoreo Authors
# SPDX-License-Identifier: Apache-2.0
