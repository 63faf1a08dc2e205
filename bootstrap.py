# bootstrap.py
from __future__ import annotations

import logging

import streamlit as st

from koenawin.engine import ScheduleEngine
from storage.local_store import LocalJsonStore, LocalStoreConfig, config_from_mapping
from storage.repo import ProgressRepo


# ----------------------------
# Config
# ----------------------------

def load_config_from_secrets() -> LocalStoreConfig:
    """
    Optional Streamlit secrets:
      [koenawin]
      store_path = "~/.koenawin/progress.json"
      rollover_interval_seconds = 60
    """
    raw = {}
    try:
        if "koenawin" in st.secrets:
            raw = dict(st.secrets["koenawin"])
    except FileNotFoundError:
        # no secrets.toml at all
        raw = {}
    return config_from_mapping(raw)


# ----------------------------
# Engine factory
# ----------------------------

def build_engine(config: LocalStoreConfig) -> ScheduleEngine:
    repo = ProgressRepo(LocalJsonStore(config))
    engine = ScheduleEngine(repo)
    engine.configure(repo.load())
    return engine


def get_engine() -> ScheduleEngine:
    """
    Cached engine instance, one per store path.
    """
    @st.cache_resource
    def _build(store_path: str, interval: int) -> ScheduleEngine:
        logging.getLogger("koenawin").info("loading progress from %s", store_path)
        return build_engine(LocalStoreConfig(store_path=store_path, rollover_interval_seconds=interval))

    cfg = load_config_from_secrets()
    return _build(cfg.store_path, cfg.rollover_interval_seconds)
