# pingrab package
from pingrab.config import GrabConfig
from pingrab.downloader import SegmentFetcher
from pingrab.errors import (
    AcquisitionError,
    FetchError,
    MalformedManifestURL,
    ManifestFetchError,
    NetworkError,
    NoAudioCandidateFound,
    NoVideoCandidateFound,
    PinGrabError,
    SegmentFetchError,
    TranscodeError,
)
from pingrab.ffmpeg import Transcoder
from pingrab.grabber import AcquisitionPaths, AcquisitionResult, VideoGrabber
from pingrab.m3u8_downloader import reconstruct, reconstruct_to_file
from pingrab.request_classifier import AcquisitionSession, RequestClassifier, choose_candidates, classify

__all__ = [
    "GrabConfig",
    "SegmentFetcher",
    "AcquisitionError",
    "FetchError",
    "MalformedManifestURL",
    "ManifestFetchError",
    "NetworkError",
    "NoAudioCandidateFound",
    "NoVideoCandidateFound",
    "PinGrabError",
    "SegmentFetchError",
    "TranscodeError",
    "Transcoder",
    "AcquisitionPaths",
    "AcquisitionResult",
    "VideoGrabber",
    "reconstruct",
    "reconstruct_to_file",
    "AcquisitionSession",
    "RequestClassifier",
    "choose_candidates",
    "classify",
]
