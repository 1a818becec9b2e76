"""
Landmark source: MediaPipe Hands over OpenCV frames.
"""
import cv2
import mediapipe as mp
import numpy as np

from .config import MediaPipeConfig
from .types import LandmarkFrame


class HandsTracker:
    """Hand landmark tracker using MediaPipe Hands."""

    def __init__(self, cfg: MediaPipeConfig):
        """
        Initialize the hands tracker.

        Args:
            cfg: Number of hands and detection/tracking confidences
        """
        self.mp_hands = mp.solutions.hands
        self.hands = self.mp_hands.Hands(
            static_image_mode=False,
            max_num_hands=cfg.max_num_hands,
            min_detection_confidence=cfg.min_detection_confidence,
            min_tracking_confidence=cfg.min_tracking_confidence,
        )
        self.mp_drawing = mp.solutions.drawing_utils

    def process(self, frame_bgr: np.ndarray, timestamp_ms: float) -> LandmarkFrame:
        """
        Process a frame and return all detected hands.

        Args:
            frame_bgr: Input frame in BGR format
            timestamp_ms: Monotonic capture time in milliseconds

        Returns:
            LandmarkFrame with 0..max_num_hands hands of 21 (x, y, z) landmarks
        """
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        results = self.hands.process(frame_rgb)

        if not results.multi_hand_landmarks:
            return LandmarkFrame.empty(timestamp_ms)

        return LandmarkFrame.from_hands(
            (hand.landmark for hand in results.multi_hand_landmarks),
            timestamp_ms,
        )

    def draw_landmarks(self, frame: np.ndarray, landmarks: LandmarkFrame) -> np.ndarray:
        """
        Draw hand landmarks on the frame.

        Args:
            frame: Input frame
            landmarks: Detected hands

        Returns:
            Frame with landmarks drawn
        """
        height, width = frame.shape[:2]

        for hand in landmarks.hands:
            for i, lm in enumerate(hand):
                px = int(lm.x * width)
                py = int(lm.y * height)
                cv2.circle(frame, (px, py), 3, (0, 255, 0), -1)
                cv2.putText(frame, str(i), (px + 5, py - 5), cv2.FONT_HERSHEY_SIMPLEX, 0.3, (255, 255, 255), 1)

        return frame

    def close(self) -> None:
        self.hands.close()
