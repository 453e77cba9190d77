#!/usr/bin/env python3
# Whatsminer btminer API client (port 4028).
# - Plaintext queries: summary, pools, edevs, status, get_version, ...
# - Privileged commands (reboot, update_pools, ...) fetch a token, sign it with
#   the admin password and travel AES-256-ECB encrypted.
# - Config via CLI or miner-conf.json:
#   {
#     "host": "192.168.1.2",
#     "port": 4028,
#     "password": "admin"
#   }
# Examples:
#   ./whatsminercli.py call summary
#   ./whatsminercli.py call set_power_pct --param percent=80
#   ./whatsminercli.py download-logs --dir logs/

import sys

from whatsminer_api.cli import main

if __name__ == "__main__":
    sys.exit(main())
