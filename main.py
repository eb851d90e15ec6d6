import logging

from bezierspline.geometry.parametric import BezierSpline
from bezierspline.logging_config import setup_logging

logger = logging.getLogger('bezierspline.main')


def main(frames=60):
    setup_logging(logging.DEBUG)

    spline = BezierSpline()
    spline.segments.value = 2
    spline.update()

    # drag the anchors and handles apart the way an editor would
    spline.set_points([[0, 0, 0], [0, 1, 0], [1, 1, 0], [1, 0, 0],
                       [1, -1, 0], [2, -1, 0], [2, 0, 0]])

    for frame in range(frames):
        spline.t.value = spline.segment_count * frame / (frames - 1)
        spline.update()
        if frame % 10 == 0:
            logger.info('t=%.3f tracking point %s', spline.t.value, spline.tracking_point.tolist())

    nodes, edges = spline.tessellate(16).curve_network()
    logger.info('tessellated into %d nodes and %d edges', len(nodes), len(edges))


if __name__ == "__main__":
    main()
