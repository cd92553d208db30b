"""vlancheck: network segmentation verification.

Discovers which peers sit on which VLANs/subnets, probes layer-3
reachability between every pair of local networks over IPv4 and IPv6,
and compares the result with an expected policy built from configured
route rules.
"""

__version__ = "1.0.0"
