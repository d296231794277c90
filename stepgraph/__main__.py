import logging
import sys

import stepgraph.config
import stepgraph.session


logger = logging.getLogger(__name__)


def main () -> None:

	"""
	Run a session from ``config.yaml`` (or the path given as the first argument).
	"""

	config_path = sys.argv[1] if len(sys.argv) > 1 else 'config.yaml'

	logging.basicConfig(level=logging.INFO)

	config = stepgraph.config.SessionConfig.from_dict(stepgraph.config.load_config(config_path))

	logging.getLogger().setLevel(config.log_level)

	logger.info("stepgraph starting...")

	session = stepgraph.session.Session.from_config(config)
	session.play(autostart=config.autostart)


if __name__ == "__main__":
	main()
