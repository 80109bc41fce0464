from io import BytesIO

from PIL import Image


def build_image(size=(256, 256), mode="RGB") -> Image.Image:
    """صورة متدرجة حتمية يتأثر حجمها المضغوط بمستوى الجودة."""
    red = Image.linear_gradient("L").resize(size)
    green = red.rotate(90)
    blue = Image.radial_gradient("L").resize(size)
    image = Image.merge("RGB", (red, green, blue))
    if mode == "RGBA":
        alpha = red.point(lambda value: 255 - value // 2)
        image = Image.merge("RGBA", (red, green, blue, alpha))
    elif mode != "RGB":
        image = image.convert(mode)
    return image


def encode_image(fmt: str, mode: str = "RGB") -> bytes:
    buffer = BytesIO()
    build_image(mode=mode).save(buffer, format=fmt)
    return buffer.getvalue()


def multipart_body(parts, boundary="testboundary42"):
    """
    بناء جسم multipart يدويًا.

    كل عنصر في ``parts`` هو (الاسم، البيانات، اسم الملف أو None، نوع المحتوى أو None).
    """
    chunks = []
    for name, data, filename, content_type in parts:
        disposition = f'form-data; name="{name}"'
        if filename is not None:
            disposition += f'; filename="{filename}"'
        chunks.append(f"--{boundary}\r\nContent-Disposition: {disposition}\r\n".encode())
        if content_type:
            chunks.append(f"Content-Type: {content_type}\r\n".encode())
        chunks.append(b"\r\n")
        chunks.append(data if isinstance(data, bytes) else data.encode())
        chunks.append(b"\r\n")
    chunks.append(f"--{boundary}--\r\n".encode())
    return b"".join(chunks), f"multipart/form-data; boundary={boundary}"
