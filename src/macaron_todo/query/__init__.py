"""Pure read-side computations over task snapshots."""
