"""
face/detector.py — Facial landmark detection
=============================================
Wraps Google's MediaPipe Face Mesh (468 landmarks + 10 iris points with
`refine_landmarks=True`) and returns the landmarks of the closest face as
a normalised `(N, 2)` array, the landmark set consumed by
`face/geometry.py` and the estimators.

Only the first face is used: one camera, one patient.
"""

import cv2
import numpy as np
# NOTE: mediapipe is imported LAZILY inside LandmarkDetector.__init__() so
# the API server can boot (and offer the simulation fallback) on machines
# where mediapipe is not installed.
from utils.logger import get_logger

logger = get_logger("face.detector")


class LandmarkDetector:
    """
    MediaPipe Face Mesh with a `detect(frame)` → landmarks interface.

    Parameters
    ----------
    max_faces : int   Faces tracked by Face Mesh (only the first is returned).
    """

    def __init__(self, max_faces: int = 1):
        try:
            import mediapipe as mp
        except ImportError as e:
            raise ImportError(
                "mediapipe is not installed. Run `pip install mediapipe` "
                "to enable camera scans (the simulation mode works without it)."
            ) from e

        self._face_mesh = mp.solutions.face_mesh.FaceMesh(
            max_num_faces=max_faces,
            refine_landmarks=True,
            min_detection_confidence=0.5,
            min_tracking_confidence=0.5,
        )
        logger.info("MediaPipe FaceMesh initialised (max_faces=%d).", max_faces)

    def detect(self, frame_bgr: np.ndarray) -> np.ndarray | None:
        """
        Run Face Mesh on one BGR frame.

        Returns
        -------
        ndarray, shape (N, 2) | None
            Normalised (x, y) landmarks of the first face, or None if no
            face was found.
        """
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        results = self._face_mesh.process(frame_rgb)

        if not results.multi_face_landmarks:
            return None

        face = results.multi_face_landmarks[0]
        return np.array([(lm.x, lm.y) for lm in face.landmark], dtype=np.float64)

    def close(self) -> None:
        """Release MediaPipe resources."""
        self._face_mesh.close()
        logger.info("FaceMesh closed.")
