#!/usr/bin/env python3
"""
Notebook Grader - Rubric Grading & Certificates
===============================================
Run: python3 -m backend.app
Then open: http://localhost:3000
"""

import logging

from flask import Flask
from flask_cors import CORS

from backend.auth import init_auth
from backend.config import config as default_config, HOST, PORT, DEBUG
from backend.routes import register_routes
from backend.rubric_config import load_rubric, GRADER_NAMES
from backend.services.certificate_generator import CertificateRenderer
from backend.services.grading_service import GradingEngine
from backend.services.submission_store import create_store

logger = logging.getLogger(__name__)


def create_app(cfg=None, store=None, engine=None, renderer=None, grader_names=None):
    """
    Build the Flask app. Collaborators not passed in are built from `cfg`
    (the rubric is loaded once here and shared by every request).
    """
    cfg = cfg or default_config
    logging.basicConfig(
        level=logging.DEBUG if DEBUG else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = Flask(__name__)
    CORS(app)

    app.config["GRADING_ENGINE"] = engine or GradingEngine(
        load_rubric(cfg.rubric_file), threshold=cfg.certificate_threshold
    )
    app.config["CERTIFICATE_RENDERER"] = renderer or CertificateRenderer(
        logo_url=cfg.logo_url,
        signature_url=cfg.signature_url,
        course_name=cfg.course_name,
        signatory_name=cfg.signatory_name,
        signatory_title=cfg.signatory_title,
        timeout=cfg.asset_fetch_timeout,
    )
    app.config["SUBMISSION_STORE"] = store or create_store(cfg)
    app.config["GRADER_NAMES"] = grader_names if grader_names is not None else GRADER_NAMES

    # ══════════════════════════════════════════════════════════════
    # AUTHENTICATION
    # ══════════════════════════════════════════════════════════════
    init_auth(app, cfg.jwt_secret)
    register_routes(app)

    logger.info(
        "App ready: %d rubric categories, certificate threshold %s%%",
        len(app.config["GRADING_ENGINE"].rubric), app.config["GRADING_ENGINE"].threshold,
    )
    return app


# ══════════════════════════════════════════════════════════════
# MAIN
# ══════════════════════════════════════════════════════════════

if __name__ == '__main__':
    print()
    print("+" + "=" * 50 + "+")
    print("|  Notebook Grader - Rubric Grading & Certificates |")
    print("+" + "=" * 50 + "+")
    print("|                                                  |")
    print(f"|  Listening on http://{HOST}:{PORT}".ljust(51) + "|")
    print("|                                                  |")
    print("|  Press Ctrl+C to stop                            |")
    print("+" + "=" * 50 + "+")
    print()

    create_app().run(host=HOST, port=PORT, debug=DEBUG)
