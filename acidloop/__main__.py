import argparse
import logging
import os
import typing

import yaml

import acidloop.constants
import acidloop.engine


logger = logging.getLogger(__name__)


def load_config (config_path: str = 'config.yaml') -> dict:

	"""
	Load configuration from a YAML file.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, 'r') as f:
		return yaml.safe_load(f) or {}


def parse_args (argv: typing.Optional[typing.List[str]] = None) -> argparse.Namespace:

	"""Parse command-line arguments."""

	parser = argparse.ArgumentParser(prog="acidloop", description="Endless generative acid techno over MIDI.")
	parser.add_argument("--config", default="config.yaml", help="YAML config file (default: config.yaml)")

	return parser.parse_args(argv)


def build_engine (config: dict) -> acidloop.engine.Engine:

	"""
	Create an engine from a config dictionary.

	Recognised keys::

		midi:
		  device_name: "TB-3"
		engine:
		  bpm: 142
		  shuffle: 0.0
		  seed: 7
		osc:
		  enabled: true
		  receive_port: 9000
		  send_port: 9001
		  send_host: 127.0.0.1
	"""

	engine_config = config.get('engine', {})
	osc_config = config.get('osc', {})

	engine = acidloop.engine.Engine(
		output_device = config.get('midi', {}).get('device_name'),
		bpm = engine_config.get('bpm', acidloop.constants.DEFAULT_BPM),
		shuffle = engine_config.get('shuffle', 0.0),
		seed = engine_config.get('seed')
	)

	if osc_config.get('enabled', False):
		engine.osc(
			receive_port = osc_config.get('receive_port', 9000),
			send_port = osc_config.get('send_port', 9001),
			send_host = osc_config.get('send_host', "127.0.0.1")
		)

	return engine


def main (argv: typing.Optional[typing.List[str]] = None) -> None:

	"""
	Main entry point for the acidloop application.
	"""

	args = parse_args(argv)
	config = load_config(args.config)

	level = config.get('logging', {}).get('level', 'INFO')
	logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO))

	logger.info("acidloop starting...")

	engine = build_engine(config)
	engine.play()


if __name__ == "__main__":
	main()
