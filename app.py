from flask import Flask, request, jsonify
from flask_cors import CORS
from flasgger import Swagger

from auth import setup_gee
from indices import describe_indices
from pipeline import PipelineError, run_stack_pipeline
from settings import ConfigError, StackConfig

# Initialize Flask app
app = Flask(__name__)
CORS(app)

swagger_config = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec",
            "route": "/apispec.json",
            "rule_filter": lambda rule: True,
            "model_filter": lambda tag: True,
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/docs"
}

swagger_template = {
    "info": {
        "title": "Sentinel-2 Index Stack API",
        "description": "Submit time-stacked vegetation index exports to Google Earth Engine",
        "version": "1.0.0"
    }
}

swagger = Swagger(app, config=swagger_config, template=swagger_template)

# Connected lazily on the first request that needs GEE
gee_connected = False

REQUIRED_FIELDS = ("lat", "lon", "buffer", "start_date", "end_date", "indices")

NUMERIC_FIELDS = ("lat", "lon", "buffer", "scale", "max_cloud")


def ensure_gee() -> bool:
    global gee_connected
    if not gee_connected:
        gee_connected = setup_gee()
    return gee_connected


def validate_stack_request(data) -> list:
    """Check request shape and types. Value ranges are checked by StackConfig."""
    if not isinstance(data, dict):
        return ["Request body must be a JSON object"]

    errors = []
    for name in REQUIRED_FIELDS:
        if name not in data:
            errors.append(f"Missing required field: {name}")
        elif data[name] is None:
            errors.append(f"{name} must not be null")

    for name in NUMERIC_FIELDS:
        value = data.get(name)
        if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
            errors.append(f"{name} must be a number")

    indices = data.get("indices")
    if indices is not None:
        if isinstance(indices, str):
            indices = [indices]
        if not isinstance(indices, list) or not all(isinstance(i, str) for i in indices):
            errors.append("indices must be a list of index names")

    for name in ("start_date", "end_date", "folder"):
        value = data.get(name)
        if value is not None and not isinstance(value, str):
            errors.append(f"{name} must be a string")

    return errors


def settings_from_request(data: dict) -> StackConfig:
    indices = data["indices"]
    if isinstance(indices, str):
        indices = [indices]

    return StackConfig().with_overrides(
        latitude=data["lat"],
        longitude=data["lon"],
        buffer_m=data["buffer"],
        start_date=data["start_date"],
        end_date=data["end_date"],
        indices=indices,
        output_folder=data.get("folder"),
        export_scale=data.get("scale"),
        max_scene_cloud_percent=data.get("max_cloud"),
    )


@app.route("/api/health", methods=["GET"])
def health():
    """
    Health check endpoint
    ---
    tags:
      - Health
    responses:
      200:
        description: Server status
        schema:
          type: object
          properties:
            status:
              type: string
              example: healthy
            gee_connected:
              type: boolean
              example: true
    """
    return jsonify({
        "status": "healthy",
        "gee_connected": gee_connected
    }), 200


@app.route("/api/indices", methods=["GET"])
def list_indices():
    """
    List supported indices
    ---
    tags:
      - Indices
    responses:
      200:
        description: Index names (case-sensitive) and their formulas, in canonical order
        schema:
          type: object
          properties:
            success:
              type: boolean
              example: true
            indices:
              type: array
              items:
                type: object
                properties:
                  name:
                    type: string
                    example: NDVI
                  formula:
                    type: string
                    example: "(NIR - Red) / (NIR + Red)"
    """
    indices = [
        {"name": name, "formula": formula}
        for name, formula in describe_indices().items()
    ]
    return jsonify({
        "success": True,
        "indices": indices
    }), 200


@app.route("/api/stacks", methods=["POST"])
def create_stacks():
    """
    Build and export time-stacked index images
    ---
    tags:
      - Stacks
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          required:
            - lat
            - lon
            - buffer
            - start_date
            - end_date
            - indices
          properties:
            lat:
              type: number
              example: 60.08733
            lon:
              type: number
              example: 17.48075
            buffer:
              type: number
              description: Buffer radius in meters
              example: 1000
            start_date:
              type: string
              example: "2022-01-01"
            end_date:
              type: string
              description: Exclusive end date
              example: "2022-01-31"
            indices:
              type: array
              items:
                type: string
              example: ["NDVI", "kNDVI"]
            folder:
              type: string
              example: S2_timeseries
            scale:
              type: number
              example: 10
            max_cloud:
              type: number
              description: Maximum scene cloud percentage (0-100)
              example: 75
    responses:
      202:
        description: Export tasks submitted
      400:
        description: Validation error
      422:
        description: Stack could not be built
      503:
        description: GEE not connected
    """
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({
            "success": False,
            "error": "Invalid JSON in request body"
        }), 400

    validation_errors = validate_stack_request(data)
    if validation_errors:
        return jsonify({
            "success": False,
            "error": "Validation failed",
            "details": validation_errors
        }), 400

    try:
        settings = settings_from_request(data)
    except ConfigError as e:
        return jsonify({
            "success": False,
            "error": "Validation failed",
            "details": e.errors
        }), 400

    if not ensure_gee():
        return jsonify({
            "success": False,
            "error": "Google Earth Engine is not connected"
        }), 503

    try:
        jobs = run_stack_pipeline(settings)
    except PipelineError as e:
        return jsonify({
            "success": False,
            "error": "Stack failed",
            "message": str(e)
        }), 422

    return jsonify({
        "success": True,
        "data": {
            "settings": settings.to_dict(),
            "jobs": [job.to_dict() for job in jobs.values()]
        }
    }), 202


@app.errorhandler(404)
def not_found(error):
    return jsonify({
        "success": False,
        "error": "Not found",
        "message": "The requested endpoint does not exist"
    }), 404


@app.errorhandler(500)
def internal_error(error):
    return jsonify({
        "success": False,
        "error": "Internal server error",
        "message": "An unexpected error occurred"
    }), 500


if __name__ == "__main__":
    ensure_gee()
    app.run(host="0.0.0.0", port=5000)
