#!/usr/bin/env python
# Configuration for the PeerFusion chat client
import os
import json
from typing import Dict, Any
import argparse


class Config:
    """Configuration management for the PeerFusion chat client"""

    # Default values
    DEFAULT_API_URL = "http://localhost:5050/api"
    DEFAULT_WS_URL = "ws://localhost:5050/ws"
    DEFAULT_REQUEST_TIMEOUT = 10.0

    def __init__(self, config_dir: str = "~/.peerfusion"):
        self.api_url = self.DEFAULT_API_URL
        self.ws_url = self.DEFAULT_WS_URL
        self.request_timeout = self.DEFAULT_REQUEST_TIMEOUT
        self.config_file = os.path.join(os.path.expanduser(config_dir), "config.json")
        self.auth_file = os.path.join(os.path.expanduser(config_dir), "auth.json")

        # Load config if exists
        self.load_config()

    def _ensure_dir(self):
        os.makedirs(os.path.dirname(self.config_file), exist_ok=True)

    def load_config(self):
        """Load configuration from file if it exists"""
        try:
            if os.path.exists(self.config_file):
                with open(self.config_file, 'r') as f:
                    config_data = json.load(f)
                    self.api_url = config_data.get('api_url', self.DEFAULT_API_URL)
                    self.ws_url = config_data.get('ws_url', self.DEFAULT_WS_URL)
                    self.request_timeout = float(config_data.get('request_timeout', self.DEFAULT_REQUEST_TIMEOUT))
        except (OSError, ValueError) as e:
            print(f"Error loading config: {e}")

    def save_config(self):
        """Save current configuration to file"""
        try:
            self._ensure_dir()
            config_data = {
                'api_url': self.api_url,
                'ws_url': self.ws_url,
                'request_timeout': self.request_timeout
            }
            with open(self.config_file, 'w') as f:
                json.dump(config_data, f, indent=2)
        except OSError as e:
            print(f"Error saving config: {e}")

    def load_auth(self) -> Dict[str, Any]:
        """Load saved authentication data if it exists"""
        try:
            if os.path.exists(self.auth_file):
                with open(self.auth_file, 'r') as f:
                    return json.load(f)
            return {}
        except (OSError, ValueError) as e:
            print(f"Error loading auth data: {e}")
            return {}

    def save_auth(self, auth_data: Dict[str, Any]):
        """Save authentication data for auto-login"""
        try:
            self._ensure_dir()
            with open(self.auth_file, 'w') as f:
                json.dump(auth_data, f, indent=2)
        except OSError as e:
            print(f"Error saving auth data: {e}")

    def clear_auth(self):
        """Clear saved authentication data"""
        if os.path.exists(self.auth_file):
            os.remove(self.auth_file)

    def parse_args(self, argv=None):
        """Parse command line arguments"""
        parser = argparse.ArgumentParser(description='PeerFusion Chat Client')
        parser.add_argument('--api-url', help='API URL', default=self.api_url)
        parser.add_argument('--ws-url', help='WebSocket URL', default=self.ws_url)
        parser.add_argument('--timeout', type=float, help='HTTP request timeout in seconds',
                            default=self.request_timeout)
        parser.add_argument('--no-auto-login', action='store_true', help='Disable auto-login')
        parser.add_argument('--verbose', action='store_true', help='Log debug output')

        args = parser.parse_args(argv)

        # Update config with command line values
        self.api_url = args.api_url
        self.ws_url = args.ws_url
        self.request_timeout = args.timeout

        # Save updated config
        self.save_config()

        return args


# Global config instance
config = Config()
