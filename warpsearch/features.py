"""MFCC feature sequences for building databases from recordings."""

import numpy as np
import librosa

from . import config


def load_audio_file(filepath: str, sample_rate: int = None) -> np.ndarray:
    """Load audio file as mono float32 at the configured sample rate."""
    y, _ = librosa.load(filepath, sr=sample_rate or config.SAMPLE_RATE, mono=True)
    return y.astype(np.float32)


def extract_mfcc(audio: np.ndarray, sample_rate: int = None, include_delta: bool = True) -> np.ndarray:
    """
    Extract MFCC features from audio.

    Args:
        audio: Audio samples (float in [-1, 1] or int16 range)
        sample_rate: Sampling rate of `audio` (default config.SAMPLE_RATE)
        include_delta: Whether to include delta and delta-delta

    Returns:
        MFCC features array (n_frames, n_features)
    """
    # Ensure float32
    if audio.dtype != np.float32:
        audio = audio.astype(np.float32)
        if np.max(np.abs(audio)) > 1.0:
            audio = audio / 32768.0

    mfcc = librosa.feature.mfcc(
        y=audio,
        sr=sample_rate or config.SAMPLE_RATE,
        n_mfcc=config.N_MFCC,
        n_fft=config.N_FFT,
        hop_length=config.HOP_LENGTH
    )

    if include_delta:
        # delta needs at least `width` (9) frames; short clips fall back to a smaller odd width
        width = min(9, mfcc.shape[1] if mfcc.shape[1] % 2 else mfcc.shape[1] - 1)
        if width >= 3:
            delta = librosa.feature.delta(mfcc, width=width)
            delta2 = librosa.feature.delta(mfcc, order=2, width=width)
        else:
            delta = np.zeros_like(mfcc)
            delta2 = np.zeros_like(mfcc)
        features = np.vstack([mfcc, delta, delta2])
    else:
        features = mfcc

    # Transpose to (n_frames, n_features)
    features = features.T

    # Cepstral mean normalization (per-utterance)
    features = features - np.mean(features, axis=0)

    return features.astype(np.float64)
