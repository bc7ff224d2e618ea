"""
models.py

SQLAlchemy models for tracked content (shows, seasons, episodes, movies) and
per-profile watch status.
"""
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Float, Text, UniqueConstraint, Index
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import relationship
from watchtracker.utils.timezone import utc_now

Base = declarative_base()


class Show(Base):
    __tablename__ = "shows"
    id = Column(Integer, primary_key=True)
    tmdb_id = Column(Integer, unique=True, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text)
    release_date = Column(String(10))  # YYYY-MM-DD as reported by TMDB
    poster_image = Column(String)
    backdrop_image = Column(String)
    user_rating = Column(Float)
    content_rating = Column(String)
    season_count = Column(Integer)
    episode_count = Column(Integer)
    status = Column(String, index=True)  # 'Returning Series', 'Ended', 'Canceled', ...
    type = Column(String)
    in_production = Column(Boolean, default=False, index=True)
    last_air_date = Column(String(10))
    last_episode_to_air = Column(Integer)
    next_episode_to_air = Column(Integer)
    network = Column(String)
    streaming_services = Column(Text)  # JSON list of provider ids
    genres = Column(Text)  # JSON list of genre ids
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
    seasons = relationship("Season", back_populates="show")


class Season(Base):
    __tablename__ = "seasons"
    id = Column(Integer, primary_key=True)
    show_id = Column(Integer, ForeignKey("shows.id"), nullable=False, index=True)
    tmdb_id = Column(Integer, unique=True, nullable=False)
    name = Column(String)
    overview = Column(Text)
    season_number = Column(Integer, nullable=False)
    release_date = Column(String(10))
    poster_image = Column(String)
    number_of_episodes = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
    show = relationship("Show", back_populates="seasons")


class Episode(Base):
    __tablename__ = "episodes"
    id = Column(Integer, primary_key=True)
    tmdb_id = Column(Integer, unique=True, nullable=False)
    show_id = Column(Integer, ForeignKey("shows.id"), nullable=False, index=True)
    season_id = Column(Integer, ForeignKey("seasons.id"), nullable=False, index=True)
    episode_number = Column(Integer, nullable=False)
    episode_type = Column(String, default="standard")
    season_number = Column(Integer, nullable=False)
    title = Column(String)
    overview = Column(Text)
    air_date = Column(String(10))
    runtime = Column(Integer, default=0)
    still_image = Column(String)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


class Movie(Base):
    __tablename__ = "movies"
    id = Column(Integer, primary_key=True)
    tmdb_id = Column(Integer, unique=True, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text)
    release_date = Column(String(10), index=True)
    runtime = Column(Integer)
    poster_image = Column(String)
    backdrop_image = Column(String)
    user_rating = Column(Float)
    mpa_rating = Column(String)
    streaming_services = Column(Text)  # JSON list of provider ids
    genres = Column(Text)  # JSON list of genre ids
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


# Watch status rows double as "favorites": a profile tracks content by owning a row for it.
class ShowWatchStatus(Base):
    __tablename__ = "show_watch_status"
    id = Column(Integer, primary_key=True)
    profile_id = Column(Integer, nullable=False)
    show_id = Column(Integer, ForeignKey("shows.id"), nullable=False)
    status = Column(String(20), nullable=False, default="NOT_WATCHED")
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("profile_id", "show_id", name="uq_show_watch_status_profile_show"),
        Index("ix_show_watch_status_show", "show_id"),
    )


class SeasonWatchStatus(Base):
    __tablename__ = "season_watch_status"
    id = Column(Integer, primary_key=True)
    profile_id = Column(Integer, nullable=False)
    season_id = Column(Integer, ForeignKey("seasons.id"), nullable=False)
    status = Column(String(20), nullable=False, default="NOT_WATCHED")
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("profile_id", "season_id", name="uq_season_watch_status_profile_season"),
    )


class EpisodeWatchStatus(Base):
    __tablename__ = "episode_watch_status"
    id = Column(Integer, primary_key=True)
    profile_id = Column(Integer, nullable=False)
    episode_id = Column(Integer, ForeignKey("episodes.id"), nullable=False)
    status = Column(String(20), nullable=False, default="NOT_WATCHED")
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("profile_id", "episode_id", name="uq_episode_watch_status_profile_episode"),
    )


class MovieWatchStatus(Base):
    __tablename__ = "movie_watch_status"
    id = Column(Integer, primary_key=True)
    profile_id = Column(Integer, nullable=False)
    movie_id = Column(Integer, ForeignKey("movies.id"), nullable=False)
    status = Column(String(20), nullable=False, default="NOT_WATCHED")
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("profile_id", "movie_id", name="uq_movie_watch_status_profile_movie"),
        Index("ix_movie_watch_status_movie", "movie_id"),
    )
