"""
Eurus - A small CLI for Cloudflare DNS records and reverse-proxy wiring.

This package provides a command-line interface for creating or updating
DNS records through the Cloudflare API, and for injecting Traefik or Caddy
routing labels into a compose manifest.

Copyright (c) 2026 Snapp'
Author: Yannis Duvignau (yduvignau@snapp.fr)
"""

__version__ = "0.1.0"
