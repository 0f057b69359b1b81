import pymunk


def get_vertices(shape):
    """
    World-space outline of a pymunk shape.

    Returns (geometry, points, radius):
    - "poly": the polygon vertices, rotated and translated by the body
    - "circle": [centre] and the circle radius
    - "segment": [a, b] and the segment radius
    """
    body = shape.body
    if isinstance(shape, pymunk.Poly):
        vertices = []
        for v in shape.get_vertices():
            x, y = v.rotated(body.angle) + body.position
            vertices.append((x, y))
        return "poly", vertices, shape.radius
    if isinstance(shape, pymunk.Circle):
        x, y = body.local_to_world(shape.offset)
        return "circle", [(x, y)], shape.radius
    if isinstance(shape, pymunk.Segment):
        a = tuple(body.local_to_world(shape.a))
        b = tuple(body.local_to_world(shape.b))
        return "segment", [a, b], shape.radius
    raise TypeError(f"unsupported shape {type(shape).__name__}")


def hex_to_rgb(color):
    """'#3b82f6' or '3b82f6' -> (59, 130, 246)."""
    h = color.lstrip("#")
    if len(h) == 3:
        h = "".join(ch * 2 for ch in h)
    if len(h) != 6:
        raise ValueError(f"not a hex colour: {color!r}")
    return tuple(int(h[i : i + 2], 16) for i in (0, 2, 4))
