"""
Allow running the agent as a module: python -m mesh_agent
"""
from mesh_agent.agent import main


if __name__ == '__main__':
    main()
