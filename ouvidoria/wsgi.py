# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
WSGI entry point for serverless and gunicorn deployments.
"""

import os

from ouvidoria.app import create_app

# Serverless runtimes expect the WSGI application to be named 'app'
app = create_app()

if __name__ == "__main__":
    app.run(debug=False, host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
