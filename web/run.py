#!/usr/bin/env python3
"""Run the CHIP-8 web console."""

import logging

from app import app, initialize_console

if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    initialize_console()
    print("Starting CHIP-8 console at http://localhost:8080")
    app.run(debug=False, host='0.0.0.0', port=8080)
