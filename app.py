# app.py

import logging
import os

from dotenv import load_dotenv
from flask import Flask, jsonify

# .env must be loaded before config classes read os.environ
load_dotenv()

from config import DevelopmentConfig, ProductionConfig, TestingConfig  # noqa: E402
from config.validation import validate_and_exit  # noqa: E402
from crew_app.importer import init_importer  # noqa: E402
from crew_app.utils.logging_config import setup_logging  # noqa: E402

CONFIG_BY_ENV = {
    "production": ProductionConfig,
    "testing": TestingConfig,
}

logger = logging.getLogger(__name__)

flask_env = os.environ.get("FLASK_ENV", "development")
if flask_env == "production":
    validate_and_exit(flask_env)

app = Flask(__name__)
app.config.from_object(CONFIG_BY_ENV.get(flask_env, DevelopmentConfig))

setup_logging(app)

# blueprint, CLI and worker are only mounted when IMPORTER_ENABLED is set
init_importer(app)


@app.errorhandler(404)
def not_found_error(error):
    return jsonify({"error": "Not found"}), 404


@app.errorhandler(500)
def internal_error(error):
    logger.error("Unhandled server error: %s", error)
    return jsonify({"error": "Internal server error"}), 500


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
