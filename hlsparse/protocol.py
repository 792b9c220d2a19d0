extm3u = "EXTM3U"
extinf = "EXTINF"
ext_x_targetduration = "EXT-X-TARGETDURATION"
ext_x_media_sequence = "EXT-X-MEDIA-SEQUENCE"
ext_x_discontinuity_sequence = "EXT-X-DISCONTINUITY-SEQUENCE"
ext_x_program_date_time = "EXT-X-PROGRAM-DATE-TIME"
ext_x_media = "EXT-X-MEDIA"
ext_x_playlist_type = "EXT-X-PLAYLIST-TYPE"
ext_x_key = "EXT-X-KEY"
ext_x_stream_inf = "EXT-X-STREAM-INF"
ext_x_version = "EXT-X-VERSION"
ext_x_endlist = "EXT-X-ENDLIST"
ext_i_frames_only = "EXT-X-I-FRAMES-ONLY"
ext_x_byterange = "EXT-X-BYTERANGE"
ext_x_i_frame_stream_inf = "EXT-X-I-FRAME-STREAM-INF"
ext_x_discontinuity = "EXT-X-DISCONTINUITY"
ext_is_independent_segments = "EXT-X-INDEPENDENT-SEGMENTS"
ext_x_map = "EXT-X-MAP"
ext_x_start = "EXT-X-START"
ext_x_session_data = "EXT-X-SESSION-DATA"
ext_x_session_key = "EXT-X-SESSION-KEY"
