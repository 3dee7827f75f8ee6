"""Raft log storage, unstable entries, the Raft log and snapshot files."""