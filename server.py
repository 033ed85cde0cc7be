"""
Watermark Backend Server

Handles all embedding/extraction in Python. A browser front end posts
base64 images and parameters as JSON and renders what comes back.
"""

from http.server import HTTPServer, BaseHTTPRequestHandler
import json
import os
from urllib.parse import urlparse

from pixel_buffer import decode_image_base64, encode_png_base64
from watermark_engine import (
    WatermarkParameters, capacity_report, describe, embed, extract, fuse,
)
from watermark_errors import WatermarkError

VERSION = '1.0'


class WatermarkHandler(BaseHTTPRequestHandler):

    def _send_json(self, data, status=200):
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Access-Control-Allow-Origin', '*')
        self.end_headers()
        self.wfile.write(json.dumps(data).encode())

    def _send_error(self, message, status=400):
        self._send_json({'ok': False, 'error': message}, status)

    def do_OPTIONS(self):
        """Handle CORS preflight"""
        self.send_response(200)
        self.send_header('Access-Control-Allow-Origin', '*')
        self.send_header('Access-Control-Allow-Methods', 'GET, POST, OPTIONS')
        self.send_header('Access-Control-Allow-Headers', 'Content-Type')
        self.end_headers()

    def do_GET(self):
        path = urlparse(self.path).path
        if path == '/api/status':
            self._send_json({'status': 'ok', 'version': VERSION,
                             'algorithms': ['spatial', 'dct', 'dwt']})
        else:
            self._send_error('Not found', 404)

    def do_POST(self):
        """Handle API requests"""
        path = urlparse(self.path).path
        content_length = int(self.headers.get('Content-Length', 0))
        body = self.rfile.read(content_length)

        try:
            data = json.loads(body) if body else {}
        except json.JSONDecodeError:
            self._send_error('Invalid JSON')
            return

        handlers = {
            '/api/capacity': self._handle_capacity,
            '/api/embed': self._handle_embed,
            '/api/extract': self._handle_extract,
        }
        handler = handlers.get(path)
        if handler is None:
            self._send_error('Unknown endpoint', 404)
            return

        try:
            handler(data)
        except WatermarkError as e:
            self._send_error(str(e))
        except Exception as e:
            self._send_error(f'Internal error: {e}', 500)

    def _handle_capacity(self, data):
        """Per-codec capacity for an image size"""
        try:
            width = int(data.get('width', 0))
            height = int(data.get('height', 0))
        except (TypeError, ValueError):
            width = height = 0
        if width <= 0 or height <= 0:
            self._send_error('Invalid dimensions')
            return

        params = WatermarkParameters.from_mapping(data)
        self._send_json({'ok': True, 'capacity': capacity_report((height, width), params)})

    def _handle_embed(self, data):
        """Embed a message into an image"""
        message = data.get('message', '')
        image_data = data.get('image', '')
        if not message:
            self._send_error('No message provided')
            return
        if not image_data:
            self._send_error('No image provided')
            return

        params = WatermarkParameters.from_mapping(data)
        pixels = decode_image_base64(image_data)
        result = embed(pixels, message, params)

        self._send_json({
            'ok': True,
            'image': encode_png_base64(result.pixels),
            'bits': len(result.bits),
            'warnings': [str(n) for n in result.notices],
        })

    def _handle_extract(self, data):
        """Extract a message from an image"""
        image_data = data.get('image', '')
        if not image_data:
            self._send_error('No image provided')
            return

        params = WatermarkParameters.from_mapping(data)
        results = extract(decode_image_base64(image_data), params)
        consensus = fuse(results)

        self._send_json({
            'ok': True,
            'message': consensus,
            'status': describe(results),
            'results': [
                {
                    'algorithm': r.algorithm.value,
                    'text': r.text,
                    'status': r.status.value,
                    'plausible': r.plausible,
                    'bits': ''.join(str(b) for b in r.bits),
                    'error': r.error,
                }
                for r in results
            ],
        })

    def log_message(self, format, *args):
        """Custom log format"""
        print(f"[rbwm] {args[0]}")


def run_server(port=8080):
    # Use 0.0.0.0 to accept external connections (for cloud hosting)
    host = '0.0.0.0'
    server = HTTPServer((host, port), WatermarkHandler)
    print(f"\nWatermark server running on port {port}")
    print("Press Ctrl+C to stop")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down...")
        server.server_close()


if __name__ == '__main__':
    import sys
    # Check for PORT environment variable (Railway, Render, etc.)
    port = int(os.environ.get('PORT', sys.argv[1] if len(sys.argv) > 1 else 8080))
    run_server(port)
