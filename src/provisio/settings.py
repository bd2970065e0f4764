from __future__ import annotations
import os

MW_HOME = os.environ.get("MW_HOME", "/var/www/mediawiki/w")
MW_VERSION = os.environ.get("MW_VERSION")
MW_VOLUME = os.environ.get("MW_VOLUME", "/mediawiki")
MW_ORIGIN_FILES = os.environ.get("MW_ORIGIN_FILES", "/mw_origin_files")
PATCH_DIR = os.environ.get("PROVISIO_PATCH_DIR", "/tmp")
MAX_JOBS = 8
POLL_INTERVAL = 0.1
