from .import_candidate import ImportCandidate
from .import_report import ImportReport
from .now_playing import NowPlaying, Progress, format_time
from .playback import Notice, PlaybackState, RepeatMode
from .track import DEFAULT_ARTIST, CoverArt, TrackRecord
from .track_meta_data import TrackMetaData
