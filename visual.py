# import libraries
import os

import pygame
from pygame.color import THECOLORS
from pygame.constants import (
    K_ESCAPE,
    K_SPACE,
    KEYDOWN,
    QUIT,
    VIDEORESIZE,
    K_f,
    K_p,
    K_r,
)

# import files
import config
import engine
import utils

PART_COLORS = {
    "funnel": (217, 119, 6),
    "peg": (51, 65, 85),
    "divider": (203, 213, 225),
    "walls": (148, 163, 184),
    "floor": (148, 163, 184),
    "gate": (120, 113, 108),
}
BACKGROUND = (234, 221, 207)


def main():
    c = config.get_config()
    sim = engine.Simulation(c=c)
    visualize(sim)


def visualize(sim, queue=None, fps=60):
    """
    Interactive window for a Simulation.
    F fill, SPACE toggle gate, P pause/resume, R reset, ESC quit.
    """
    pygame.init()
    screen = pygame.display.set_mode(
        (int(sim.width), int(sim.height)), pygame.RESIZABLE
    )
    pygame.display.set_caption("Galton Board")
    font = pygame.font.SysFont(None, 18)
    clock = pygame.time.Clock()

    if queue is None:
        queue = config.cycle_pattern(
            config.DEFAULT_COLORS[:1], sim.c["default_ball_count"]
        )

    running = True
    while running:
        for e in pygame.event.get():
            if e.type == QUIT:
                running = False
            elif e.type == VIDEORESIZE:
                sim.request_resize(e.w, e.h)
            elif e.type == KEYDOWN:
                if e.key == K_ESCAPE:
                    running = False
                elif e.key == K_f:
                    sim.fill(queue)
                elif e.key == K_SPACE:
                    sim.toggle_gate()
                    if sim.gate.is_open and sim.status != engine.RUNNING:
                        sim.start()
                elif e.key == K_p:
                    if sim.status == engine.RUNNING:
                        sim.pause()
                    else:
                        sim.start()
                elif e.key == K_r:
                    sim.reset()

        sim.tick()
        draw_snapshot(screen, sim.snapshot(), font)
        pygame.display.flip()
        clock.tick(fps)

    pygame.quit()


def save_frame(snapshot, filename):
    """Render a snapshot off-screen and save it as an image."""
    os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
    pygame.init()
    screen = pygame.Surface((max(1, int(snapshot.width)), max(1, int(snapshot.height))))
    font = pygame.font.SysFont(None, 18)
    draw_snapshot(screen, snapshot, font)
    pygame.image.save(screen, filename)
    print(f"Saved frame: {filename}")


##############
# DRAWING
##############


def draw_snapshot(screen, snapshot, font=None):
    screen.fill(BACKGROUND)
    draw_parts(screen, snapshot.parts)
    draw_balls(screen, snapshot.balls)
    if font is not None:
        draw_labels(screen, snapshot, font)
        draw_status(screen, snapshot, font)


def draw_parts(screen, parts):
    for part in parts:
        color = PART_COLORS.get(part.kind, THECOLORS["black"])
        if part.geometry == "poly":
            pygame.draw.polygon(screen, color, part.points)
        elif part.geometry == "circle":
            (x, y), = part.points
            pygame.draw.circle(screen, color, (int(x), int(y)), max(1, int(part.radius)))
        elif part.geometry == "segment":
            a, b = part.points
            pygame.draw.line(screen, color, a, b, max(1, int(2 * part.radius)))


def draw_balls(screen, balls):
    for ball in balls:
        pygame.draw.circle(
            screen,
            utils.hex_to_rgb(ball.color.color),
            (int(ball.x), int(ball.y)),
            max(1, int(ball.radius)),
        )


def draw_labels(screen, snapshot, font):
    for label, x in zip(snapshot.labels, snapshot.bin_centers):
        text = font.render(label, True, THECOLORS["black"])
        rect = text.get_rect(center=(int(x), int(snapshot.height) - 10))
        screen.blit(text, rect)


def draw_status(screen, snapshot, font):
    gate_state = "open" if snapshot.gate_open else "closed"
    line = f"Balls: {len(snapshot.balls)}  Gate: {gate_state}  {snapshot.status}"
    screen.blit(font.render(line, True, (100, 116, 139)), (8, 8))


if __name__ == "__main__":
    main()
