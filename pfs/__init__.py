from pfs.config import VERSION as __version__
