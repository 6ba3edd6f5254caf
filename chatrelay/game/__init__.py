"""Chat pipeline: channel resolution, eligibility, rendering and orchestration."""
