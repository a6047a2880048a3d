# server.py
import logging
import os
import time

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.utils import secure_filename

from config import LOG_FORMAT, load_settings

logger = logging.getLogger(__name__)


def create_app(settings=None):
    settings = settings or load_settings()
    upload_dir = os.path.abspath(settings.upload_dir)

    app = Flask(__name__)
    app.config["UPLOAD_DIR"] = upload_dir
    app.config["UPLOAD_FIELD"] = settings.upload_field
    app.config["MAX_CONTENT_LENGTH"] = settings.max_upload_mb * 1024 * 1024
    CORS(app, resources={r"/*": {"origins": list(settings.cors_origins)}})

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    @app.route("/upload-audio", methods=["POST"])
    def upload_audio():
        f = request.files.get(app.config["UPLOAD_FIELD"])
        if not f or not f.filename:
            logger.warning("Upload rejected: no file attached")
            return jsonify({"message": "No file was uploaded."}), 400

        os.makedirs(app.config["UPLOAD_DIR"], exist_ok=True)
        name = f"{int(time.time() * 1000)}-{secure_filename(f.filename) or 'upload'}"
        path = os.path.join(app.config["UPLOAD_DIR"], name)
        f.save(path)

        # repeated fields come back as lists
        fields = {k: v if len(v) > 1 else v[0] for k, v in request.form.to_dict(flat=False).items()}
        logger.info("Stored upload %s (%d extra fields)", path, len(fields))
        return jsonify({
            "message": "Audio file uploaded successfully.",
            "filename": name,
            "filepath": path,
            "fields": fields,
        }), 200

    return app


def run():
    settings = load_settings()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    app = create_app(settings)
    logger.info("Upload server storing files in %s", app.config["UPLOAD_DIR"])
    app.run(host=settings.upload_host, port=settings.upload_port)


if __name__ == "__main__":
    run()
