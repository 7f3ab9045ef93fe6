"""Default numerical tolerances.

Every operation takes its tolerance as an explicit keyword argument;
these constants only supply the defaults.
"""

# singular values below this count as zero when computing ranks
EPS_RANK = 1e-8

# affine basis extraction and affine map invertibility
EPS_AFFINE = 1e-8

# pairwise distance agreement required of a rigid map
EPS_RIGID = 1e-8

# perpendicularity check in signedangle
EPS_ANGLE = 1e-12

# boundary classification in point containment
EPS_CONTAINMENT = 1e-5

# distance agreement between aligned vertices when merging
EPS_MERGE = 1e-8

# random ray directions tried before containment is indeterminate
DEFAULT_MAX_RAY_ATTEMPTS = 100

# coplanarity and degeneracy checks of planar primitives
EPS_PLANAR = 1e-8
