#!/usr/bin/env python3
"""
wandcut API Server
Session-based endpoints for the browser editor: load an image, click to
erase regions, key out colors, fit to the sticker canvas, export APNG.
"""

import os
import logging
import uuid
import base64
import threading
from io import BytesIO
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from flask import Flask, request, jsonify, send_file
from flask_cors import CORS

from .models.pixel_buffer import PixelBuffer
from .services.image_service import ImageService

# --- Centralized Logging Configuration ---
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
    datefmt='%H:%M:%S'
)

app = Flask(__name__)
CORS(app)  # Enable CORS for frontend communication

# Configuration
MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_SIZE_MB", "20")) * 1024 * 1024
app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH

# Initialize services
image_service = ImageService()

logger = logging.getLogger(__name__)

# Session storage for editor state
sessions = {}
sessions_lock = threading.Lock()


class EditSession:
    """Holds the working image and collected animation frames for one user."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.image: Optional[PixelBuffer] = None
        self.frames: List[PixelBuffer] = []
        # Edits mutate self.image in place; one request per session at a time
        self.lock = threading.Lock()

    def clear(self):
        """Clear all images from memory."""
        self.image = None
        self.frames.clear()


def get_or_create_session(session_id: str = None) -> EditSession:
    """Get existing session or create new one."""
    if session_id is None:
        session_id = str(uuid.uuid4())

    with sessions_lock:
        if session_id not in sessions:
            sessions[session_id] = EditSession(session_id)
        return sessions[session_id]


def buffer_to_base64(buffer: PixelBuffer) -> str:
    """Encode a buffer as a PNG data URL for JSON responses."""
    png_bytes = image_service.encode_png(buffer)
    base64_string = base64.b64encode(png_bytes).decode('utf-8')
    return f"data:image/png;base64,{base64_string}"


def _json_body() -> dict:
    return request.get_json(silent=True) or {}


def _lookup_session(data: dict):
    """Returns (session, None) or (None, error response)."""
    session_id = data.get('session_id')
    session = sessions.get(session_id) if isinstance(session_id, str) else None
    if session is None:
        return None, (jsonify({'success': False, 'message': 'Invalid session'}), 400)
    return session, None


def _no_image():
    return jsonify({'success': False, 'message': 'No image loaded'}), 400


def _image_payload(session: EditSession, message: str) -> dict:
    return {
        'success': True,
        'session_id': session.session_id,
        'width': session.image.width,
        'height': session.image.height,
        'transparent_ratio': round(image_service.transparent_ratio(session.image), 4),
        'image': buffer_to_base64(session.image),
        'message': message,
    }


def _bad_request(e: Exception):
    logger.warning(f"Rejected request: {e}")
    return jsonify({'success': False, 'message': str(e)}), 400


@app.route('/api/load-image', methods=['POST'])
def load_image():
    """Upload an image into a (new or existing) session."""
    try:
        if 'image' not in request.files:
            return jsonify({'success': False, 'message': 'No image provided'}), 400
        file = request.files['image']
        if file.filename == '':
            return jsonify({'success': False, 'message': 'No file selected'}), 400

        # Decode first so a rejected upload never leaves an empty session behind
        image = image_service.decode(file.read())

        session = get_or_create_session(request.form.get('session_id'))
        with session.lock:
            session.image = image
            logger.info(f"Loaded {image.width}x{image.height} image "
                        f"for session {session.session_id}")
            return jsonify(_image_payload(session, 'Image loaded'))

    except ValueError as e:
        return _bad_request(e)
    except Exception as e:
        logger.error(f"Image loading error: {e}")
        return jsonify({'success': False, 'message': f'Error loading image: {str(e)}'}), 500


@app.route('/api/magic-wand', methods=['POST'])
def magic_wand():
    """Erase the contiguous region around the clicked pixel."""
    data = _json_body()
    session, error = _lookup_session(data)
    if error:
        return error
    with session.lock:
        if session.image is None:
            return _no_image()
        try:
            x, y = data['x'], data['y']
            image_service.magic_wand(session.image, x, y, data.get('tolerance'))
            return jsonify(_image_payload(session, f'Erased region at ({x}, {y})'))
        except KeyError as e:
            return _bad_request(ValueError(f'Missing coordinate: {e}'))
        except ValueError as e:
            return _bad_request(e)
        except Exception as e:
            logger.error(f"Magic wand error: {e}")
            return jsonify({'success': False, 'message': f'Error in magic wand: {str(e)}'}), 500


@app.route('/api/color-key', methods=['POST'])
def color_key():
    """Erase a color everywhere in the image."""
    data = _json_body()
    session, error = _lookup_session(data)
    if error:
        return error
    with session.lock:
        if session.image is None:
            return _no_image()
        try:
            color = data['color']
            image_service.remove_color(session.image, color, data.get('tolerance'))
            return jsonify(_image_payload(session, f'Removed color {tuple(color[:3])}'))
        except (KeyError, TypeError) as e:
            return _bad_request(ValueError(f'Missing or invalid color: {e}'))
        except ValueError as e:
            return _bad_request(e)
        except Exception as e:
            logger.error(f"Color key error: {e}")
            return jsonify({'success': False, 'message': f'Error in color key: {str(e)}'}), 500


@app.route('/api/pick-color', methods=['POST'])
def pick_color():
    """Return the RGBA value under the cursor."""
    data = _json_body()
    session, error = _lookup_session(data)
    if error:
        return error
    with session.lock:
        if session.image is None:
            return _no_image()
        try:
            r, g, b, a = image_service.pick_color(session.image, data['x'], data['y'])
            return jsonify({'success': True, 'color': [r, g, b, a]})
        except KeyError as e:
            return _bad_request(ValueError(f'Missing coordinate: {e}'))
        except ValueError as e:
            return _bad_request(e)


@app.route('/api/resize', methods=['POST'])
def resize():
    """Fit the image onto a fixed-size transparent canvas."""
    data = _json_body()
    session, error = _lookup_session(data)
    if error:
        return error
    with session.lock:
        if session.image is None:
            return _no_image()
        try:
            width = int(data['width']) if data.get('width') is not None else None
            height = int(data['height']) if data.get('height') is not None else None
            session.image = image_service.fit_canvas(session.image, width, height)
            return jsonify(_image_payload(session, f'Resized to {session.image.width}x{session.image.height}'))
        except (TypeError, ValueError) as e:
            return _bad_request(e)
        except Exception as e:
            logger.error(f"Resize error: {e}")
            return jsonify({'success': False, 'message': f'Error in resize: {str(e)}'}), 500


@app.route('/api/add-frame', methods=['POST'])
def add_frame():
    """Snapshot the current image as the next animation frame."""
    data = _json_body()
    session, error = _lookup_session(data)
    if error:
        return error
    with session.lock:
        if session.image is None:
            return _no_image()
        session.frames.append(session.image.copy())
        return jsonify({
            'success': True,
            'session_id': session.session_id,
            'frame_count': len(session.frames),
            'message': f'Added frame {len(session.frames)}'
        })


@app.route('/api/export-apng', methods=['POST'])
def export_apng():
    """Encode the collected frames as an animated PNG."""
    data = _json_body()
    session, error = _lookup_session(data)
    if error:
        return error
    try:
        with session.lock:
            apng = image_service.encode_animation(session.frames,
                                                  delay_ms=data.get('delay'),
                                                  loop=data.get('loop'))
        if apng is None:
            return jsonify({'success': False, 'message': 'No frames to export'}), 400
        return send_file(BytesIO(apng), mimetype='image/apng',
                         as_attachment=True, download_name='animation.png')
    except (TypeError, ValueError) as e:
        return _bad_request(e)
    except Exception as e:
        logger.error(f"APNG export error: {e}")
        return jsonify({'success': False, 'message': f'Error exporting APNG: {str(e)}'}), 500


@app.route('/api/image/<session_id>')
def serve_image(session_id):
    """Serve the session's current image as PNG."""
    session = sessions.get(session_id)
    if session is None:
        return jsonify({'error': 'Image not found'}), 404
    with session.lock:
        if session.image is None:
            return jsonify({'error': 'Image not found'}), 404
        png = image_service.encode_png(session.image)
    return send_file(BytesIO(png), mimetype='image/png')


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'message': 'wandcut API is running',
        'active_sessions': len(sessions)
    })


@app.route('/api/clear-session', methods=['POST'])
def clear_session():
    """Clear a session and free memory."""
    session_id = _json_body().get('session_id')
    with sessions_lock:
        session = sessions.pop(session_id, None) if isinstance(session_id, str) else None
    if session is None:
        return jsonify({'success': False, 'message': 'Session not found'}), 404
    with session.lock:
        session.clear()
    return jsonify({'success': True, 'message': 'Session cleared'})


@app.errorhandler(413)
def too_large(e):
    """Handle file too large error."""
    return jsonify({'error': f'File too large. Maximum size is {MAX_CONTENT_LENGTH // (1024 * 1024)}MB.'}), 413


@app.errorhandler(500)
def internal_error(e):
    """Handle internal server error."""
    logger.error(f"Internal server error: {e}")
    return jsonify({'error': 'Internal server error'}), 500


def main():
    port = int(os.getenv("PORT", "5000"))
    logger.info(f"Starting wandcut API on port {port}")
    logger.info(f"Max upload size: {MAX_CONTENT_LENGTH // (1024 * 1024)}MB")
    app.run(host='0.0.0.0', port=port, debug=False)


if __name__ == '__main__':
    main()
