"""
Lightweight QR Code Generator
Renders QR payloads as SVG without image dependencies
"""

import qrcode
import qrcode.image.svg
from typing import Dict, Any
import base64

from ..schemas.attendance import QRPayload

class LightweightQRGenerator:
    """Generate QR codes without Pillow dependency"""

    @staticmethod
    def generate_svg_qr_code(data: str, size: int = 10, border: int = 4) -> str:
        """Generate QR code as SVG string"""
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=size,
            border=border
        )
        qr.add_data(data)
        qr.make(fit=True)

        qr_image = qr.make_image(image_factory=qrcode.image.svg.SvgPathImage)
        svg = qr_image.to_string()
        return svg.decode('utf-8') if isinstance(svg, bytes) else svg

    @staticmethod
    def generate_base64_svg(data: str, size: int = 10, border: int = 4) -> str:
        """Generate QR code as base64 encoded SVG data URI"""
        svg_string = LightweightQRGenerator.generate_svg_qr_code(data, size, border)
        base64_svg = base64.b64encode(svg_string.encode('utf-8')).decode('utf-8')
        return f"data:image/svg+xml;base64,{base64_svg}"

    @staticmethod
    def generate_payload_qr(payload: QRPayload, size: int = 10, border: int = 4) -> Dict[str, Any]:
        """Encode an attendance payload as JSON and render it"""
        data = payload.model_dump_json(by_alias=True)
        return {
            "data": data,
            "image": LightweightQRGenerator.generate_base64_svg(data, size, border),
            "type": "svg"
        }
