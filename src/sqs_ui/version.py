"""Build metadata, injected through the environment at image build time"""
import os

VERSION = os.getenv("APP_VERSION", "dev")
COMMIT = os.getenv("GIT_COMMIT", "none")
BUILD_TIME = os.getenv("BUILD_TIME", "unknown")


def version_info():
    return {
        "version": VERSION,
        "commit": COMMIT,
        "build_time": BUILD_TIME,
    }
