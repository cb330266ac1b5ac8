"""In-memory simulations of small on-chain example programs and the runtime they use."""