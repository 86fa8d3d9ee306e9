def format_info(difficulty, depth, score, nodes, qnodes, tt_hits, elapsed, move, checkmate_score):
    """One-line search report for the log."""
    total = nodes + qnodes
    nps = int(total / elapsed) if elapsed > 0 else 0

    if abs(score) >= checkmate_score:
        score_str = "mate" if score > 0 else "mated"
    else:
        score_str = f"cp {score}"

    move_str = move.uci() if move else "-"
    return (
        f"difficulty {difficulty} depth {depth} score {score_str} nodes {nodes} "
        f"qnodes {qnodes} tthits {tt_hits} nps {nps} time {int(elapsed * 1000)} move {move_str}"
    )
